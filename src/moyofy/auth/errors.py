from __future__ import annotations


class AuthError(Exception):
    """Base error for the bar owner's Google identity."""


class AuthInvalid(AuthError):
    """
    The owner must sign in again.

    `cleared` is True when the stored token was revoked and has been
    deleted, as opposed to never having been stored at all.
    """

    def __init__(self, message: str = "", cleared: bool = False) -> None:
        super().__init__(message)
        self.cleared = cleared


class AuthFailed(AuthError):
    """Auth broke for a reason a new login will not fix (network, Google outage)."""
