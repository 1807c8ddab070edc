from __future__ import annotations

import hashlib
import json
import logging
from typing import Optional

from models.profile_record import NormalizedProfile
from ports.fetcher import AssetFetcherPort
from services.errors import AssetFetchFailed

logger = logging.getLogger(__name__)


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def canonical_json(value) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class Hasher:
    """Content fingerprints for normalized profiles and their image assets.

    Without a fetcher, assets are fingerprinted by their source reference (URL);
    that is lower fidelity: a changed image behind an unchanged URL goes unnoticed.
    With a fetcher, an unreachable source raises AssetFetchFailed unless
    `fallback_to_reference` is set, in which case the reference is hashed instead.
    """

    def __init__(self, fetcher: Optional[AssetFetcherPort] = None, *, fallback_to_reference: bool = False) -> None:
        self.fetcher = fetcher
        self.fallback_to_reference = fallback_to_reference

    def fingerprint_profile(self, profile: NormalizedProfile) -> str:
        return sha256_bytes(canonical_json(profile.content()).encode("utf-8"))

    def fingerprint_asset(self, url: str) -> str:
        if self.fetcher is None:
            return self._reference_hash(url)
        try:
            return sha256_bytes(self.fetcher.fetch(url))
        except AssetFetchFailed as exc:
            if not self.fallback_to_reference:
                raise
            logger.warning(
                "Hashing asset reference instead of content: %s", url,
                extra={"step": "asset_hash", "status": "fallback", "error": exc.reason},
            )
            return self._reference_hash(url)

    @staticmethod
    def _reference_hash(url: str) -> str:
        return sha256_bytes(("ref:" + url).encode("utf-8"))
