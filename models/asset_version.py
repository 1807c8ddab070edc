from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from models.profile_record import AssetCategory


class AssetVersion(BaseModel):
    """Stored image version; at most one is current per (profile_id, image_type)."""

    id: int | None = None
    profile_id: int
    image_type: AssetCategory
    image_url: str
    image_hash: str
    is_current: bool = True
    created_at: str

    model_config = ConfigDict(extra="ignore")
