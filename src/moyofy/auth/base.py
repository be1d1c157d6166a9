from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol


class AuthHealthStatus(str, Enum):
    OK = "ok"
    # Token works, but the project's daily quota is spent; suggestions
    # will fail until the reset even though no new login is needed
    OK_API_QUOTA = "ok_api_quota"
    AUTH_INVALID = "auth_invalid"
    FAILED = "failed"


@dataclass(frozen=True)
class AuthHealthResult:
    provider: str
    status: AuthHealthStatus
    message: str

    @property
    def healthy(self) -> bool:
        return self.status in (AuthHealthStatus.OK, AuthHealthStatus.OK_API_QUOTA)

    @property
    def needs_login(self) -> bool:
        return self.status == AuthHealthStatus.AUTH_INVALID


class AuthProvider(Protocol):
    """What the CLI needs from the playlist owner's identity."""

    name: str

    def is_ready(self) -> bool: ...

    def login(self) -> None: ...

    def build_client(self, creds: Any = None) -> Any: ...

    def health_check(self) -> AuthHealthResult: ...

    def logout(self) -> None: ...
