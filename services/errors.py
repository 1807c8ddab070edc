from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models.run_record import RunRecord


class EtlError(RuntimeError):
    """Base class for reconciliation failures."""


class AuthenticationRequired(EtlError):
    """No acting principal is available; runs and new profiles need an owner."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class StoreWriteFailed(EtlError):
    """The backing store rejected or failed a read/write."""


class AssetFetchFailed(EtlError):
    """An asset source could not be fetched. Retryable; scoped to that asset."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch asset {url}: {reason}")
        self.url = url
        self.reason = reason


class InvalidRunTransition(EtlError):
    """A run was asked to leave a state it is not in."""


class BatchFailed(EtlError):
    """A batch aborted; carries the failed run with its partial statistics."""

    def __init__(self, run: "RunRecord") -> None:
        super().__init__(run.error_message or "Batch failed")
        self.run = run
