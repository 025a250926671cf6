from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeAlias

EventPayload: TypeAlias = Dict[str, Any]
EventHandler: TypeAlias = Callable[[EventPayload], Awaitable[None]]


@dataclass(eq=False)
class _Subscription:
    """One handler on one topic, fed by its own FIFO queue."""

    topic: str
    handler: EventHandler
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    worker: Optional[asyncio.Task] = None
    loop_id: Optional[int] = None
    busy: bool = False

    @property
    def name(self) -> str:
        return getattr(self.handler, "__name__", type(self.handler).__name__)


class EventBus:
    """In-process PubSub hub connecting the session store to its observers.

    Every subscription owns a queue drained by a single worker task, so a
    subscriber receives events in publish order even when one of its
    deliveries is slow. A failing handler is logged and never blocks the
    publisher or other subscribers.
    """

    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[_Subscription]] = defaultdict(list)
        self._lock: Optional[asyncio.Lock] = None
        self._loop_id: Optional[int] = None
        self._logger = logging.getLogger(__name__)

    def _ensure_lock(self) -> asyncio.Lock:
        loop_id = id(asyncio.get_running_loop())
        if self._lock is None or self._loop_id != loop_id:
            self._lock = asyncio.Lock()
            self._loop_id = loop_id
        return self._lock

    def _find(self, topic: str, handler: EventHandler) -> Optional[_Subscription]:
        for sub in self._subscriptions.get(topic, []):
            if sub.handler == handler:
                return sub
        return None

    async def subscribe(self, topic: str, handler: EventHandler) -> None:
        """Register an async handler for a topic. Duplicate registrations are ignored."""
        async with self._ensure_lock():
            if self._find(topic, handler) is None:
                sub = _Subscription(topic, handler)
                self._subscriptions[topic].append(sub)
                self._ensure_worker(sub)

    async def unsubscribe(self, topic: str, handler: EventHandler) -> None:
        """Remove a handler from a topic, dropping anything still queued for it."""
        async with self._ensure_lock():
            sub = self._find(topic, handler)
            if sub is not None:
                self._subscriptions[topic].remove(sub)
                self._stop(sub)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscriptions.get(topic, []))

    async def publish(self, topic: str, payload: EventPayload) -> None:
        """Queue an event for every subscriber of ``topic``."""
        async with self._ensure_lock():
            subs = list(self._subscriptions.get(topic, []))

        if not subs:
            self._logger.debug(f"No subscribers for topic '{topic}'")
            return

        self._logger.debug(f"Publishing to topic '{topic}' with {len(subs)} handler(s)")
        for sub in subs:
            self._ensure_worker(sub)
            sub.queue.put_nowait(payload)

    async def wait_until_idle(self, timeout: float = 10.0) -> bool:
        """Wait until every queued event has been handled.

        Returns:
            True if all queues drained, False if timeout reached
        """
        try:
            await asyncio.wait_for(self._drain(), timeout)
            return True
        except asyncio.TimeoutError:
            self._logger.warning("EventBus: Timeout reached while waiting for subscribers")
            return False

    async def _drain(self) -> None:
        # Handlers may publish in turn, so keep joining until nothing is queued or running
        while True:
            subs = [sub for subs in self._subscriptions.values() for sub in subs]
            await asyncio.gather(*(sub.queue.join() for sub in subs))
            if all(sub.queue.empty() and not sub.busy for sub in subs):
                return

    def _ensure_worker(self, sub: _Subscription) -> None:
        loop_id = id(asyncio.get_running_loop())
        if sub.loop_id != loop_id:
            # Queues cannot move between event loops
            sub.queue = asyncio.Queue()
            sub.worker = None
            sub.loop_id = loop_id
        if sub.worker is None or sub.worker.done():
            sub.worker = asyncio.create_task(self._run(sub), name=f"eventbus:{sub.topic}:{sub.name}")

    async def _run(self, sub: _Subscription) -> None:
        while True:
            payload = await sub.queue.get()
            sub.busy = True
            try:
                await self._safe_dispatch(sub, payload)
            finally:
                sub.busy = False
                sub.queue.task_done()

    async def _safe_dispatch(self, sub: _Subscription, payload: EventPayload) -> None:
        """Dispatch wrapper to keep one handler failure from stopping the bus."""
        try:
            await sub.handler(payload)
        except Exception as exc:
            self._logger.exception(
                f"EventBus handler error in '{sub.name}' for topic '{sub.topic}'",
                exc_info=exc,
            )

    def _stop(self, sub: _Subscription) -> None:
        if sub.worker is not None:
            sub.worker.cancel()
            sub.worker = None
        while not sub.queue.empty():
            sub.queue.get_nowait()
            sub.queue.task_done()

    def clear(self) -> None:
        """Remove all subscriptions."""
        for subs in self._subscriptions.values():
            for sub in subs:
                self._stop(sub)
        self._subscriptions.clear()
