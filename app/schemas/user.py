# File: app/schemas/user.py

from pydantic import BaseModel


class SignInRequest(BaseModel):
    attempt_temp_user_creation: bool = False


class SignInResponse(BaseModel):
    success: bool
    token: str
    username: str
    uuid: str


class UserRead(BaseModel):
    uuid: str
    username: str
    is_temp: bool

    class Config:
        from_attributes = True  # Pydantic v2: replaces orm_mode
