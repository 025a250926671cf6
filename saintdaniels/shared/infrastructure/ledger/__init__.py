"""Rewards ledger abstraction and the in-memory implementation."""

from saintdaniels.shared.infrastructure.ledger.base import RewardsLedger
from saintdaniels.shared.infrastructure.ledger.memory_ledger import InMemoryRewardsLedger

__all__ = ["RewardsLedger", "InMemoryRewardsLedger"]
