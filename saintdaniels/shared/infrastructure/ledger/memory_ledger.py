"""In-memory rewards ledger."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from saintdaniels.shared.domain.errors import DuplicateRequestError, UnknownRewardError
from saintdaniels.shared.domain.models import Redemption, Reward
from saintdaniels.shared.infrastructure.ledger.base import RewardsLedger

logger = logging.getLogger(__name__)


class InMemoryRewardsLedger(RewardsLedger):
    """Ledger backed by dicts. Nothing survives the process."""

    def __init__(self, catalog: Iterable[Reward] = ()):
        self._catalog: Dict[str, Reward] = {reward.id: reward for reward in catalog}
        self._redemptions: Dict[str, Redemption] = {}

    async def list_rewards(self) -> List[Reward]:
        return list(self._catalog.values())

    async def record_redemption(self, user_id: str, reward: Reward, request_id: str) -> Redemption:
        existing = self._redemptions.get(request_id)
        if existing is not None:
            if existing.user_id != user_id or existing.reward_id != reward.id:
                raise DuplicateRequestError(request_id)
            logger.info(f"Ledger: request {request_id} already recorded, returning original receipt")
            return existing

        # An empty catalog accepts any reward
        if self._catalog and reward.id not in self._catalog:
            raise UnknownRewardError(reward.id)

        redemption = Redemption(
            request_id=request_id,
            user_id=user_id,
            reward_id=reward.id,
            points_cost=reward.points_cost,
            redeemed_at=datetime.now(timezone.utc),
        )
        self._redemptions[request_id] = redemption
        logger.debug(f"Ledger: recorded {reward.id} for user {user_id} ({request_id})")
        return redemption

    async def get_redemption(self, request_id: str) -> Optional[Redemption]:
        return self._redemptions.get(request_id)

    def history(self, user_id: str) -> List[Redemption]:
        """Redemptions recorded for ``user_id``, oldest first."""
        return [r for r in self._redemptions.values() if r.user_id == user_id]
