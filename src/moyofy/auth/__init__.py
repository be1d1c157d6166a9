from __future__ import annotations

from moyofy.auth.base import AuthHealthResult, AuthHealthStatus, AuthProvider
from moyofy.auth.errors import AuthError, AuthFailed, AuthInvalid
from moyofy.auth.health import check
from moyofy.auth.token_store import (
    EnvTokenStore,
    FileTokenStore,
    TokenStore,
    build_token_store,
)

__all__ = [
    "AuthError",
    "AuthFailed",
    "AuthHealthResult",
    "AuthHealthStatus",
    "AuthInvalid",
    "AuthProvider",
    "EnvTokenStore",
    "FileTokenStore",
    "TokenStore",
    "build_token_store",
    "check",
]
