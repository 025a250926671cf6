"""Session State Store.

Owns the signed-in user, the rewards catalog and the health goals, and
publishes an immutable snapshot to the EventBus after every mutation.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional, Tuple

from saintdaniels.shared.core import events
from saintdaniels.shared.core.event_bus import EventBus, EventHandler, EventPayload
from saintdaniels.shared.domain.errors import (
    AuthProviderUnavailableError,
    DuplicateRequestError,
    InsufficientPointsError,
    NoActiveSessionError,
    SessionError,
    SignInSupersededError,
)
from saintdaniels.shared.domain.models import (
    Activity,
    HealthGoal,
    HealthMetrics,
    OperationError,
    Reward,
    RewardCategory,
    SessionSnapshot,
    User,
)
from saintdaniels.shared.infrastructure.auth.base import AuthProvider
from saintdaniels.shared.infrastructure.ledger.base import RewardsLedger

logger = logging.getLogger(__name__)


class SessionStore:
    """State store for one user session.

    Mutations are coroutines serialized by a single lock. Each one swaps in a
    whole new immutable record, so observers see either the state before a
    mutation or the state after it, never something in between.

    Usage:
        store = SessionStore(event_bus, MockAuthProvider(), InMemoryRewardsLedger(catalog))
        await store.subscribe(on_state_changed)
        await store.sign_in("a@x.com", "secret")
        await store.redeem_reward(reward)
    """

    def __init__(
        self,
        event_bus: EventBus,
        auth_provider: AuthProvider,
        ledger: RewardsLedger,
        *,
        sign_in_max_retries: int = 2,
        retry_delay: float = 0.5,
    ) -> None:
        self.bus = event_bus
        self._auth = auth_provider
        self._ledger = ledger
        self._sign_in_max_retries = sign_in_max_retries
        self._retry_delay = retry_delay

        self._user: Optional[User] = None
        self._rewards: Tuple[Reward, ...] = ()
        self._goals: Tuple[HealthGoal, ...] = ()
        self._pending_sign_ins = 0
        self._last_error: Optional[OperationError] = None

        # Bumped by every sign_in/sign_out; a pending sign_in only commits if still current
        self._sign_in_generation = 0
        self._lock: Optional[asyncio.Lock] = None
        self._loop_id: Optional[int] = None

    def _ensure_lock(self) -> asyncio.Lock:
        """Get or create the mutation lock for the current event loop."""
        loop_id = id(asyncio.get_running_loop())
        if self._lock is None or self._loop_id != loop_id:
            self._lock = asyncio.Lock()
            self._loop_id = loop_id
        return self._lock

    # --- Reads ---

    @property
    def current_user(self) -> Optional[User]:
        return self._user

    @property
    def is_signed_in(self) -> bool:
        return self._user is not None

    @property
    def rewards(self) -> Tuple[Reward, ...]:
        return self._rewards

    @property
    def health_goals(self) -> Tuple[HealthGoal, ...]:
        return self._goals

    @property
    def is_loading(self) -> bool:
        """True while any sign_in is waiting on the auth provider."""
        return self._pending_sign_ins > 0

    @property
    def last_error(self) -> Optional[OperationError]:
        return self._last_error

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            current_user=self._user,
            rewards=self._rewards,
            health_goals=self._goals,
            is_loading=self.is_loading,
            last_error=self._last_error,
        )

    def require_user(self, operation: str = "access user state") -> User:
        """Return the signed-in user.

        Raises:
            NoActiveSessionError: If nobody is signed in
        """
        if self._user is None:
            logger.warning(f"Rejected {operation}: no active session")
            raise NoActiveSessionError(operation)
        return self._user

    def rewards_in_category(self, category: Optional[RewardCategory] = None) -> Tuple[Reward, ...]:
        """Catalog filtered by category; ``None`` returns everything."""
        if category is None:
            return self._rewards
        return tuple(reward for reward in self._rewards if reward.category == category)

    # --- Observers ---

    async def subscribe(self, handler: EventHandler) -> None:
        """Register a handler for ``state.changed`` snapshots."""
        await self.bus.subscribe(events.TOPIC_STATE_CHANGED, handler)

    async def unsubscribe(self, handler: EventHandler) -> None:
        await self.bus.unsubscribe(events.TOPIC_STATE_CHANGED, handler)

    # --- Session ---

    async def sign_in(self, email: str, password: str) -> User:
        """Authenticate and replace the current session.

        Transient provider failures are retried with doubling delay. If a
        later sign_in or sign_out starts before this one finishes, the later
        one wins and this call raises ``SignInSupersededError``.

        ``is_loading`` is published as True when the call starts and False
        when it settles, whatever the outcome.

        Raises:
            AuthenticationError: Credentials rejected
            AuthProviderUnavailableError: Provider still failing after retries
            SignInSupersededError: Superseded by a newer sign_in/sign_out
        """
        async with self._track("sign in"):
            self._sign_in_generation += 1
            generation = self._sign_in_generation

            await self._begin_loading()
            try:
                user = await self._authenticate_with_retry(email, password)

                async with self._ensure_lock():
                    if generation != self._sign_in_generation:
                        logger.info(f"Discarding superseded sign-in for {email}")
                        raise SignInSupersededError(f"Sign-in for {email} was superseded")
                    self._user = user
            finally:
                snapshot = await self._end_loading()

            logger.info(f"Signed in {user.email} (user {user.id})")
            await self._publish(events.TOPIC_SIGNED_IN, events.create_signed_in_event(user), snapshot)
            return user

    async def _begin_loading(self) -> None:
        async with self._ensure_lock():
            self._pending_sign_ins += 1
            flipped = self._pending_sign_ins == 1
            # A fresh attempt supersedes whatever failed before it
            self._last_error = None
            snapshot = self.snapshot()

        if flipped:
            await self._publish(events.TOPIC_LOADING_CHANGED, events.create_loading_changed_event(True), snapshot)

    async def _end_loading(self) -> SessionSnapshot:
        async with self._ensure_lock():
            self._pending_sign_ins -= 1
            flipped = self._pending_sign_ins == 0
            snapshot = self.snapshot()

        if flipped:
            await self._publish(events.TOPIC_LOADING_CHANGED, events.create_loading_changed_event(False), snapshot)
        return snapshot

    async def _authenticate_with_retry(self, email: str, password: str) -> User:
        delay = self._retry_delay
        attempt = 0
        while True:
            try:
                return await self._auth.authenticate(email, password)
            except AuthProviderUnavailableError as exc:
                if attempt >= self._sign_in_max_retries:
                    logger.warning(f"Sign-in for {email} failed after {attempt + 1} attempt(s): {exc}")
                    raise
                attempt += 1
                logger.warning(
                    f"Auth provider unavailable ({exc}); retry {attempt}/{self._sign_in_max_retries} in {delay:.2f}s"
                )
                await asyncio.sleep(delay)
                delay *= 2

    async def sign_out(self) -> None:
        """Clear the current session. No-op when already signed out."""
        # Also cancels any sign_in still waiting on the provider
        self._sign_in_generation += 1

        async with self._ensure_lock():
            user = self._user
            if user is None:
                return
            self._user = None
            snapshot = self.snapshot()

        logger.info(f"Signed out user {user.id}")
        await self._publish(events.TOPIC_SIGNED_OUT, events.create_signed_out_event(user.id), snapshot)

    # --- Health Metrics ---

    async def update_health_metrics(self, metrics: HealthMetrics) -> None:
        """Replace the user's metrics snapshot wholesale."""
        async with self._track("update health metrics"), self._ensure_lock():
            user = self.require_user("update health metrics")
            self._user = user.model_copy(update={"health_metrics": metrics})
            snapshot = self.snapshot()

        await self._publish(
            events.TOPIC_METRICS_UPDATED,
            events.create_metrics_updated_event(user.id, metrics),
            snapshot,
        )

    # --- Points & Rewards ---

    async def add_points(self, amount: int) -> None:
        """Adjust the balance by ``amount``.

        Negative adjustments are allowed as long as the balance stays at or
        above zero.

        Raises:
            NoActiveSessionError: If nobody is signed in
            InsufficientPointsError: If the adjustment would go below zero
        """
        async with self._track("add points"), self._ensure_lock():
            user = self.require_user("add points")
            balance = user.points + amount
            if balance < 0:
                logger.warning(f"Rejected adjustment of {amount} points: balance is {user.points}")
                raise InsufficientPointsError(balance=user.points, required=-amount)
            self._user = user.model_copy(update={"points": balance})
            snapshot = self.snapshot()

        logger.info(f"Adjusted points by {amount} for user {user.id} (balance {balance})")
        await self._publish(
            events.TOPIC_POINTS_ADDED,
            events.create_points_added_event(user.id, amount, balance),
            snapshot,
        )

    async def record_activity(self, activity: Activity) -> None:
        """Prepend ``activity`` to the history and credit its points together."""
        async with self._track("record activity"), self._ensure_lock():
            user = self.require_user("record activity")
            balance = user.points + activity.points
            if balance < 0:
                logger.warning(f"Rejected {activity.type.value} activity: {activity.points} points exceeds balance")
                raise InsufficientPointsError(balance=user.points, required=-activity.points)
            self._user = user.model_copy(
                update={
                    "points": balance,
                    "recent_activities": (activity,) + user.recent_activities,
                }
            )
            snapshot = self.snapshot()

        logger.info(f"Recorded {activity.type.value} activity ({activity.points:+d}) for user {user.id}")
        await self._publish(
            events.TOPIC_ACTIVITY_RECORDED,
            events.create_activity_recorded_event(user.id, activity, balance),
            snapshot,
        )

    async def load_rewards(self) -> Tuple[Reward, ...]:
        """Fetch the catalog from the ledger and publish it."""
        async with self._track("load rewards"):
            rewards = tuple(await self._ledger.list_rewards())

        async with self._ensure_lock():
            self._rewards = rewards
            snapshot = self.snapshot()

        logger.info(f"Loaded {len(rewards)} rewards")
        await self._publish(events.TOPIC_REWARDS_LOADED, events.create_rewards_loaded_event(len(rewards)), snapshot)
        return rewards

    async def redeem_reward(self, reward: Reward, request_id: Optional[str] = None) -> None:
        """Exchange points for ``reward``.

        The balance check, the ledger write and the decrement happen under
        the store lock, so concurrent redemptions cannot oversell. Replaying
        a ``request_id`` the ledger already holds for this user and reward is
        a no-op.

        Raises:
            NoActiveSessionError: If nobody is signed in
            InsufficientPointsError: If the balance is below ``reward.points_cost``
            UnknownRewardError: If the ledger does not know the reward
            DuplicateRequestError: If ``request_id`` belongs to another user or reward
        """
        request_id = request_id or uuid.uuid4().hex

        async with self._track("redeem reward"), self._ensure_lock():
            user = self.require_user("redeem reward")

            existing = await self._ledger.get_redemption(request_id)
            if existing is not None:
                if existing.user_id != user.id or existing.reward_id != reward.id:
                    logger.warning(
                        f"Rejected redemption of {reward.id}: request {request_id} "
                        f"already recorded {existing.reward_id} for user {existing.user_id}"
                    )
                    raise DuplicateRequestError(request_id)
                logger.info(f"Redemption {request_id} already applied, skipping")
                return

            if user.points < reward.points_cost:
                logger.warning(
                    f"Rejected redemption of {reward.id}: balance {user.points} < cost {reward.points_cost}"
                )
                raise InsufficientPointsError(balance=user.points, required=reward.points_cost)

            redemption = await self._ledger.record_redemption(user.id, reward, request_id)
            balance = user.points - reward.points_cost
            self._user = user.model_copy(update={"points": balance})
            snapshot = self.snapshot()

        logger.info(f"Redeemed {reward.name} for {reward.points_cost} points (balance {balance})")
        await self._publish(
            events.TOPIC_REWARD_REDEEMED,
            events.create_reward_redeemed_event(redemption, balance),
            snapshot,
        )

    # --- Health Goals ---

    async def add_health_goal(self, goal: HealthGoal) -> None:
        """Append ``goal``. Ids are not deduplicated."""
        async with self._ensure_lock():
            self._goals = self._goals + (goal,)
            snapshot = self.snapshot()

        await self._publish(events.TOPIC_GOAL_ADDED, events.create_goal_event(goal), snapshot)

    async def update_health_goal(self, goal: HealthGoal) -> None:
        """Replace the first goal with a matching id; unknown ids are ignored."""
        async with self._ensure_lock():
            index = next((i for i, g in enumerate(self._goals) if g.id == goal.id), None)
            if index is None:
                logger.debug(f"No health goal with id {goal.id}; nothing to update")
                return
            goals = list(self._goals)
            goals[index] = goal
            self._goals = tuple(goals)
            snapshot = self.snapshot()

        await self._publish(events.TOPIC_GOAL_UPDATED, events.create_goal_event(goal), snapshot)

    # --- Errors ---

    async def clear_error(self) -> None:
        """Dismiss the last recorded error. No-op when there is none."""
        async with self._ensure_lock():
            if self._last_error is None:
                return
            self._last_error = None
            snapshot = self.snapshot()

        await self._publish(events.TOPIC_ERROR_CLEARED, {}, snapshot)

    @asynccontextmanager
    async def _track(self, operation: str) -> AsyncIterator[None]:
        """Record a rejected ``operation`` as ``last_error`` and re-raise."""
        try:
            yield
        except SignInSupersededError:
            # Not a failure the user can act on; the newer call owns the state
            raise
        except SessionError as exc:
            error = OperationError(
                operation=operation,
                error_type=type(exc).__name__,
                message=str(exc),
                occurred_at=datetime.now(timezone.utc),
            )
            async with self._ensure_lock():
                self._last_error = error
                snapshot = self.snapshot()
            await self._publish(events.TOPIC_OPERATION_FAILED, events.create_operation_failed_event(error), snapshot)
            raise

    # --- Publishing ---

    async def _publish(self, topic: str, payload: EventPayload, snapshot: SessionSnapshot) -> None:
        await self.bus.publish(topic, payload)
        await self.bus.publish(
            events.TOPIC_STATE_CHANGED,
            events.create_state_changed_event(topic, snapshot),
        )
