"""Domain errors raised by the session store and its capabilities.

All of these are local, recoverable conditions meant to be surfaced to the
calling screen. None of them should take the process down.
"""

from __future__ import annotations


class SessionError(Exception):
    """Base class for session store errors."""


class AuthenticationError(SessionError):
    """Credentials were rejected by the auth provider."""


class AuthProviderUnavailableError(SessionError):
    """Transient failure talking to the auth provider. Safe to retry."""


class SignInSupersededError(SessionError):
    """A newer sign-in (or sign-out) started while this sign-in was pending."""


class NoActiveSessionError(SessionError):
    """A per-user operation was attempted with no signed-in user."""

    def __init__(self, operation: str = "operation") -> None:
        self.operation = operation
        super().__init__(f"Cannot {operation}: no user is signed in")


class InsufficientPointsError(SessionError):
    """The operation would take the point balance below zero."""

    def __init__(self, balance: int, required: int) -> None:
        self.balance = balance
        self.required = required
        super().__init__(f"Insufficient points: balance {balance}, required {required}")


class UnknownRewardError(SessionError):
    """The reward is not part of the ledger's catalog."""

    def __init__(self, reward_id: str) -> None:
        self.reward_id = reward_id
        super().__init__(f"Unknown reward: {reward_id}")


class DuplicateRequestError(SessionError):
    """A redemption ``request_id`` was reused for a different user or reward."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        super().__init__(f"Request id {request_id} already used for a different redemption")
