"""Raw profile -> NormalizedProfile.

Default table applied to absent/None/blank input, so the fingerprint only ever
sees defined values:

    full_name, headline, location, summary, profile_url   -> ""
    experience, education, skills                         -> []
    connections_count                                     -> 0
    profile_image_url, banner_image_url                   -> no AssetRef (also when not text)

Strings are stripped. Non-text scalars such as a numeric linkedin_id are
stringified; the validator reports the ones that should have been text.
List order is preserved; it is part of the content.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Union

from models.profile_record import AssetRef, NormalizedProfile, RawProfile
from services.domain_utils import normalize_linkedin_profile_url
from services.errors import EtlError
from utils.number_parsing import parse_count


class MissingIdentityKey(EtlError):
    """A record arrived without the externally assigned identity key."""


_ASSET_FIELDS = (
    ("profile_image_url", "profile_photo"),
    ("banner_image_url", "banner"),
)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _items(value: Any) -> List[Any]:
    if not isinstance(value, (list, tuple)):
        return []
    return list(value)


def to_raw(record: Union[RawProfile, Mapping[str, Any]]) -> RawProfile:
    if isinstance(record, RawProfile):
        return record
    return RawProfile.model_validate(dict(record))


def normalize_profile(record: Union[RawProfile, Mapping[str, Any]]) -> NormalizedProfile:
    raw = to_raw(record)
    linkedin_id = _text(raw.linkedin_id)
    if not linkedin_id:
        raise MissingIdentityKey("Profile record has no linkedin_id")

    profile_url = _text(raw.profile_url)
    profile_url = normalize_linkedin_profile_url(profile_url) or profile_url

    skills = [s for s in (_text(x) for x in _items(raw.skills)) if s]

    assets: List[AssetRef] = []
    for field_name, category in _ASSET_FIELDS:
        value = getattr(raw, field_name)
        url = _text(value) if isinstance(value, str) else ""
        if url:
            assets.append(AssetRef(category=category, url=url))

    return NormalizedProfile(
        linkedin_id=linkedin_id,
        full_name=_text(raw.full_name),
        headline=_text(raw.headline),
        location=_text(raw.location),
        summary=_text(raw.summary),
        experience=_items(raw.experience),
        education=_items(raw.education),
        skills=skills,
        connections_count=parse_count(raw.connections_count) or 0,
        profile_url=profile_url,
        assets=assets,
    )
