# File: app/schemas/project.py

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

# Client-side only; never persisted
TRANSIENT_FIELDS = ("sourcePath", "renderedPath", "publicPath")


class ProjectRecord(BaseModel):
    """
    A floor plan project as stored in the key-value store.

    Field names follow the JSON wire format (camelCase). Unknown fields are
    kept and stored verbatim.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = None
    name: Optional[str] = None
    source_image: str = Field(default="", alias="sourceImage")
    rendered_image: Optional[str] = Field(default=None, alias="renderedImage")
    image_3d: Optional[str] = Field(default=None, alias="image3D")
    timestamp: int = 0
    owner_id: Optional[str] = Field(default=None, alias="ownerId")
    is_public: bool = Field(default=False, alias="isPublic")

    # attribution
    shared_by: Optional[str] = Field(default=None, alias="sharedBy")
    shared_at: Optional[str] = Field(default=None, alias="sharedAt")

    source_path: Optional[str] = Field(default=None, alias="sourcePath")
    rendered_path: Optional[str] = Field(default=None, alias="renderedPath")
    public_path: Optional[str] = Field(default=None, alias="publicPath")

    updated_at: Optional[str] = Field(default=None, alias="updatedAt")

    def to_payload(self) -> Dict[str, Any]:
        """Wire form without transient path fields."""
        data = self.model_dump(by_alias=True, exclude_none=False)
        for key in TRANSIENT_FIELDS:
            data.pop(key, None)
        return data

