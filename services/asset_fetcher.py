"""
HTTP fetcher for profile images, used to hash asset content.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

import requests

from config.settings import Settings, get_settings
from services.errors import AssetFetchFailed

logger = logging.getLogger(__name__)


class HttpAssetFetcher:
    """Downloads asset bytes with bounded retries; timeouts come from settings."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def fetch(self, url: str) -> bytes:
        last_error = "no attempt made"
        attempts = max(1, self.settings.max_retries)
        for attempt in range(attempts):
            try:
                response = self.session.get(url, timeout=self.settings.http_timeout_seconds)
                if response.status_code == 200:
                    return response.content
                last_error = f"HTTP {response.status_code}"
                # Client errors will not succeed on retry
                if 400 <= response.status_code < 500 and response.status_code != 429:
                    break
            except requests.exceptions.RequestException as e:
                last_error = str(e)
            logger.warning(
                "Asset fetch attempt %d/%d failed for %s: %s", attempt + 1, attempts, url, last_error,
                extra={"step": "asset_fetch", "status": "retry", "error": last_error},
            )
            if attempt < attempts - 1:
                time.sleep(2 ** attempt)  # Exponential backoff
        raise AssetFetchFailed(url, last_error)
