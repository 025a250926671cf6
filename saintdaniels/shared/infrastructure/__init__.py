"""
Shared Infrastructure Module
=============================

Capabilities the session store is built against (identity, rewards ledger).
"""

# Auth
from saintdaniels.shared.infrastructure.auth.base import AuthProvider
from saintdaniels.shared.infrastructure.auth.mock_provider import MockAuthProvider

# Ledger
from saintdaniels.shared.infrastructure.ledger.base import RewardsLedger
from saintdaniels.shared.infrastructure.ledger.memory_ledger import InMemoryRewardsLedger

__all__ = [
    # Auth
    "AuthProvider",
    "MockAuthProvider",
    # Ledger
    "RewardsLedger",
    "InMemoryRewardsLedger",
]
