from __future__ import annotations

import logging
from typing import Callable, Literal, Optional

from models.asset_version import AssetVersion
from ports.repos import AssetStorePort
from services.errors import StoreWriteFailed
from services.hashing import Hasher
from utils.keyed_lock import ASSET_LOCKS, KeyedLock

logger = logging.getLogger(__name__)

AssetOutcome = Literal["added", "unchanged", "versioned"]


class AssetReconciler:
    """Keeps exactly one current image version per (profile, category).

    A new version is inserted only when the content fingerprint changes; the
    previous current version is retired in the same store transaction, never deleted.
    """

    def __init__(
        self,
        store: AssetStorePort,
        hasher: Hasher,
        clock: Callable[[], str],
        locks: Optional[KeyedLock] = None,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.clock = clock
        self.locks = locks if locks is not None else ASSET_LOCKS

    def reconcile(self, profile_id: int, category: str, source_ref: str) -> AssetOutcome:
        image_hash = self.hasher.fingerprint_asset(source_ref)
        with self.locks.hold((profile_id, category)):
            current = self.store.get_current(profile_id, category)
            if current is not None and current.image_hash == image_hash:
                return "unchanged"
            version = AssetVersion(
                profile_id=profile_id,
                image_type=category,
                image_url=source_ref,
                image_hash=image_hash,
                is_current=True,
                created_at=self.clock(),
            )
            if current is None:
                self.store.insert_current(version)
            elif self.store.replace_current(int(current.id), version) is None:
                raise StoreWriteFailed(
                    f"Current {category} image for profile {profile_id} changed concurrently"
                )
        outcome: AssetOutcome = "added" if current is None else "versioned"
        logger.info(
            "Image %s for profile %s %s", category, profile_id, outcome,
            extra={"step": "reconcile_asset", "profile_id": profile_id, "outcome": outcome},
        )
        return outcome
