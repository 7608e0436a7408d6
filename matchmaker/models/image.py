"""
Image models - profile photos, persisted or still uploading.
"""
import uuid
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


def _new_local_key() -> str:
    return uuid.uuid4().hex[:12]


class ImageAsset(BaseModel):
    """
    One profile photo.
    `id` is only set once the remote store has persisted the upload;
    placeholders for in-flight uploads are told apart by `local_key`.
    """
    id: Optional[str] = None
    position: int = Field(default=0, ge=0)
    storage_id: Optional[str] = Field(default=None, description="Storage reference")
    url: Optional[str] = None
    file_name: Optional[str] = None
    local_key: str = Field(default_factory=_new_local_key)

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @property
    def status(self) -> Literal["pending", "persisted"]:
        return "persisted" if self.is_persisted else "pending"

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "ImageAsset":
        """Build an asset from a remote API record."""
        asset_id = raw.get("id") or raw.get("_id") or raw.get("imageId") or raw.get("storageId")
        if not asset_id:
            raise ValueError("Image record without an identifier")
        position = raw.get("position") or raw.get("order") or 0
        return cls(
            id=str(asset_id),
            position=int(position),
            storage_id=raw.get("storageId"),
            url=raw.get("url") or raw.get("imageUrl"),
            file_name=raw.get("fileName"),
        )
