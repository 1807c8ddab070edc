from __future__ import annotations

from typing import Optional

from config.settings import Settings, get_settings


class StaticPrincipalProvider:
    """Fixed acting principal; None means unauthenticated."""

    def __init__(self, principal: Optional[str]) -> None:
        self.principal = principal

    def current_principal(self) -> Optional[str]:
        return self.principal


class SettingsPrincipalProvider:
    """Principal taken from ETL_PRINCIPAL, re-read on every call."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings

    def current_principal(self) -> Optional[str]:
        settings = self.settings or get_settings()
        return (settings.etl_principal or "").strip() or None
