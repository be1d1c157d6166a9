from __future__ import annotations

from moyofy.auth.base import AuthHealthResult, AuthProvider


def check(provider: AuthProvider) -> AuthHealthResult:
    return provider.health_check()
