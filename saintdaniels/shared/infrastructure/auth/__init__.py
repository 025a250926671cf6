"""Auth provider abstraction and the mock implementation."""

from saintdaniels.shared.infrastructure.auth.base import AuthProvider
from saintdaniels.shared.infrastructure.auth.mock_provider import MockAuthProvider

__all__ = ["AuthProvider", "MockAuthProvider"]
