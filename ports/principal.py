from __future__ import annotations

from typing import Optional, Protocol


class PrincipalProviderPort(Protocol):
    def current_principal(self) -> Optional[str]:
        ...
