from .fetcher import AssetFetcherPort
from .principal import PrincipalProviderPort
from .repos import AssetStorePort, ChangeLogPort, ProfileStorePort, RunStorePort
from .validator import ValidatorPort

__all__ = [
    "AssetFetcherPort",
    "AssetStorePort",
    "ChangeLogPort",
    "PrincipalProviderPort",
    "ProfileStorePort",
    "RunStorePort",
    "ValidatorPort",
]
