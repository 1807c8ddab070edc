from __future__ import annotations

from typing import Protocol


class AssetFetcherPort(Protocol):
    def fetch(self, url: str) -> bytes:
        """Return the asset bytes or raise AssetFetchFailed."""
        ...
