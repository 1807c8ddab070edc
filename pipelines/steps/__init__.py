# Namespace for pipeline steps
from .validate_profiles import ValidateProfiles  # noqa: F401
from .reconcile_profiles import ReconcileProfiles  # noqa: F401
