"""Rewards ledger capability consumed by the session store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from saintdaniels.shared.domain.models import Redemption, Reward


class RewardsLedger(ABC):
    """Backend holding the rewards catalog and the redemption record.

    ``record_redemption`` must be idempotent by ``request_id``: replaying a
    request for the same user and reward returns the original receipt
    instead of recording a second one.
    """

    @abstractmethod
    async def list_rewards(self) -> List[Reward]:
        """Return the redeemable catalog."""

    @abstractmethod
    async def record_redemption(self, user_id: str, reward: Reward, request_id: str) -> Redemption:
        """Record a redemption and return its receipt.

        Raises:
            UnknownRewardError: If the reward is not in the catalog
            DuplicateRequestError: If ``request_id`` was recorded for another user or reward
        """

    @abstractmethod
    async def get_redemption(self, request_id: str) -> Optional[Redemption]:
        """Look up a previously recorded redemption."""
