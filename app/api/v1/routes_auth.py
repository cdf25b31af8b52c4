# File: app/api/v1/routes_auth.py

"""
Auth API routes.

Sign-in hands out an opaque bearer token; each sign-in creates a temporary
user so a visitor can start a project before registering.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, get_token
from app.models.user import User
from app.schemas.user import SignInRequest, SignInResponse, UserRead
from app.services import auth_service

router = APIRouter()


@router.post("/sign-in", response_model=SignInResponse, summary="Sign in")
def sign_in(payload: SignInRequest, db: Session = Depends(get_db)):
    result = auth_service.sign_in(
        db,
        attempt_temp_user_creation=payload.attempt_temp_user_creation,
    )
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Set attempt_temp_user_creation to create a temporary user.",
        )
    return SignInResponse(
        success=True, token=result.token, username=result.username, uuid=result.uuid
    )


@router.post("/sign-out", summary="Revoke the current token")
def sign_out(token: Optional[str] = Depends(get_token), db: Session = Depends(get_db)):
    return {"signed_out": auth_service.sign_out(db, token)}


@router.get("/me", response_model=UserRead, summary="Current user")
def me(user: Optional[User] = Depends(get_current_user)):
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not authenticated",
        )
    return user
