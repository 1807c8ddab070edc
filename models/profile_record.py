from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


AssetCategory = Literal["profile_photo", "banner"]


class RawProfile(BaseModel):
    """Incoming external profile shape, as delivered by the scraper/export.

    Fields are left untyped so malformed values reach the validator as
    findings instead of failing the parse and aborting the batch.
    """

    linkedin_id: Any = None
    full_name: Any = None
    headline: Any = None
    location: Any = None
    summary: Any = None
    experience: Any = None
    education: Any = None
    skills: Any = None
    connections_count: Any = None
    profile_url: Any = None
    profile_image_url: Any = None
    banner_image_url: Any = None

    model_config = ConfigDict(extra="ignore")


class AssetRef(BaseModel):
    category: AssetCategory
    url: str

    model_config = ConfigDict(frozen=True)


class NormalizedProfile(BaseModel):
    """Canonical profile view; every optional field carries a defined empty value."""

    linkedin_id: str
    full_name: str = ""
    headline: str = ""
    location: str = ""
    summary: str = ""
    experience: list[Any] = Field(default_factory=list)
    education: list[Any] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    connections_count: int = 0
    profile_url: str = ""
    assets: list[AssetRef] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    def content(self) -> dict[str, Any]:
        """Field values that participate in the fingerprint."""
        return self.model_dump(mode="json")
