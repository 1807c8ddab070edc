from .asset_version import AssetVersion
from .change_entry import ChangeEntry
from .profile_record import AssetRef, NormalizedProfile, RawProfile
from .run_record import RunRecord, RunStats
from .stored_profile import StoredProfile
from .validation import Finding

__all__ = [
    "AssetRef",
    "AssetVersion",
    "ChangeEntry",
    "Finding",
    "NormalizedProfile",
    "RawProfile",
    "RunRecord",
    "RunStats",
    "StoredProfile",
]
