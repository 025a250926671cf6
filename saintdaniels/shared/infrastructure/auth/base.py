"""Auth provider capability consumed by the session store."""

from __future__ import annotations

from abc import ABC, abstractmethod

from saintdaniels.shared.domain.models import User


class AuthProvider(ABC):
    """Identity backend used by ``SessionStore.sign_in``.

    Implementations raise ``AuthenticationError`` for rejected credentials and
    ``AuthProviderUnavailableError`` for transient failures. Only the latter
    is retried by the store.
    """

    @abstractmethod
    async def authenticate(self, email: str, password: str) -> User:
        """Verify credentials and return the signed-in user's record."""
