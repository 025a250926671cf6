"""Shared fixtures for the session store tests."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List

import pytest
import pytest_asyncio

from saintdaniels.app.state import SessionStore
from saintdaniels.shared.core.event_bus import EventBus, EventPayload
from saintdaniels.shared.domain.errors import AuthProviderUnavailableError
from saintdaniels.shared.domain.models import GoalType, HealthGoal, Reward, RewardCategory, User
from saintdaniels.shared.infrastructure.auth.base import AuthProvider
from saintdaniels.shared.infrastructure.auth.mock_provider import MockAuthProvider
from saintdaniels.shared.infrastructure.ledger.memory_ledger import InMemoryRewardsLedger


class Recorder:
    """Async event handler that keeps every payload it receives."""

    def __init__(self) -> None:
        self.payloads: List[EventPayload] = []

    async def __call__(self, payload: EventPayload) -> None:
        self.payloads.append(payload)

    @property
    def changes(self) -> List[str]:
        return [p["change"] for p in self.payloads]


class GatedAuthProvider(AuthProvider):
    """Blocks each authenticate() call until its email's gate is opened."""

    def __init__(self) -> None:
        self.gates: Dict[str, asyncio.Event] = {}
        self._users = MockAuthProvider()

    def gate(self, email: str) -> asyncio.Event:
        return self.gates.setdefault(email, asyncio.Event())

    async def authenticate(self, email: str, password: str) -> User:
        await self.gate(email).wait()
        return self._users.build_user(email)


class FlakyAuthProvider(AuthProvider):
    """Fails with a transient error ``failures`` times, then succeeds."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0
        self._users = MockAuthProvider()

    async def authenticate(self, email: str, password: str) -> User:
        self.calls += 1
        if self.calls <= self.failures:
            raise AuthProviderUnavailableError("identity service timed out")
        return self._users.build_user(email)


class SlowLedger(InMemoryRewardsLedger):
    """Ledger that suspends while recording, like a networked backend would."""

    async def record_redemption(self, user_id, reward, request_id):
        await asyncio.sleep(0.01)
        return await super().record_redemption(user_id, reward, request_id)


@pytest.fixture
def catalog() -> List[Reward]:
    return [
        Reward(
            id="amazon-25",
            name="Amazon Gift Card",
            description="$25 gift card",
            points_cost=2500,
            category=RewardCategory.GIFT_CARDS,
        ),
        Reward(
            id="yoga-class",
            name="Yoga Class",
            description="Single drop-in class",
            points_cost=300,
            category=RewardCategory.FITNESS,
        ),
        Reward(
            id="vitamin-pack",
            name="Vitamin Pack",
            description="30-day supply",
            points_cost=800,
            category=RewardCategory.HEALTH,
        ),
    ]


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def ledger(catalog) -> InMemoryRewardsLedger:
    return InMemoryRewardsLedger(catalog)


@pytest.fixture
def store(event_bus, ledger) -> SessionStore:
    return SessionStore(event_bus, MockAuthProvider(), ledger, retry_delay=0)


@pytest_asyncio.fixture
async def signed_in_store(store) -> SessionStore:
    await store.sign_in("a@x.com", "secret")
    return store


@pytest.fixture
def make_reward():
    def _make(points_cost: int, reward_id: str = "any") -> Reward:
        return Reward(
            id=reward_id,
            name=f"Reward {points_cost}",
            description="test reward",
            points_cost=points_cost,
            category=RewardCategory.MERCHANDISE,
        )
    return _make


@pytest.fixture
def make_goal():
    def _make(goal_id: str, current: float = 0, target: float = 10000) -> HealthGoal:
        return HealthGoal(
            id=goal_id,
            type=GoalType.STEPS,
            target=target,
            current=current,
            deadline=datetime.now(timezone.utc) + timedelta(days=7),
            points_reward=100,
        )
    return _make


@pytest.fixture
def restore_root_logger(monkeypatch):
    root = logging.getLogger()
    level = root.level
    monkeypatch.setattr(root, "handlers", [])
    yield root
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root.setLevel(level)
