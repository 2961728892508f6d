"""Process-wide registry of notification delivery listeners."""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Mapping
from typing import Any, Callable

from app.domain.ports import Presenter
from app.infrastructure.repositories import NotificationRepository

from .delivery import DEFAULT_DEDUPE_CAPACITY, DeliveryDispatcher

logger = logging.getLogger(__name__)

PresenterFactory = Callable[[str], Presenter]

DEFAULT_RETAINED_DISPATCHERS = 128


class DeliveryRegistry:
    """Keep at most one active delivery listener per recipient.

    Stopped dispatchers are parked in a bounded, least-recently-stopped pool
    so a quick reconnection reuses the same dedupe memory; the oldest ones
    are dropped once more than ``retain`` recipients are disconnected.
    """

    def __init__(
        self,
        repository: NotificationRepository,
        presenter_factory: PresenterFactory,
        *,
        capacity: int = DEFAULT_DEDUPE_CAPACITY,
        retain: int = DEFAULT_RETAINED_DISPATCHERS,
    ) -> None:
        if retain < 0:
            raise ValueError("retain must not be negative")
        self._repository = repository
        self._presenter_factory = presenter_factory
        self._capacity = capacity
        self._retain = retain
        self._active: dict[str, DeliveryDispatcher] = {}
        self._stopped: OrderedDict[str, DeliveryDispatcher] = OrderedDict()

    def __len__(self) -> int:
        return len(self._active) + len(self._stopped)

    def get(self, user_id: str) -> DeliveryDispatcher | None:
        return self._active.get(user_id) or self._stopped.get(user_id)

    def is_listening(self, user_id: str) -> bool:
        dispatcher = self._active.get(user_id)
        return dispatcher is not None and dispatcher.listening

    async def start(self, user_id: str) -> DeliveryDispatcher:
        dispatcher = self._active.get(user_id) or self._stopped.pop(user_id, None)
        if dispatcher is None:
            dispatcher = DeliveryDispatcher(
                self._repository,
                self._presenter_factory(user_id),
                capacity=self._capacity,
            )
        self._active[user_id] = dispatcher
        await dispatcher.start(user_id)
        self._stopped.pop(user_id, None)
        self._active[user_id] = dispatcher
        return dispatcher

    async def stop(self, user_id: str) -> None:
        dispatcher = self._active.get(user_id)
        if dispatcher is None:
            return
        await dispatcher.stop()
        if dispatcher.listening:
            # Restarted while stopping.
            return
        self._active.pop(user_id, None)
        self._stopped[user_id] = dispatcher
        self._stopped.move_to_end(user_id)
        while len(self._stopped) > self._retain:
            evicted, _ = self._stopped.popitem(last=False)
            logger.debug("Dropped delivery state of %s", evicted)

    async def present_remote(self, user_id: str, payload: Mapping[str, Any]) -> bool:
        """Render a remote push payload addressed to ``user_id``.

        Recipients without delivery state (never connected, or evicted) have
        no alert channel, so nothing is rendered.
        """

        dispatcher = self.get(user_id)
        if dispatcher is None:
            logger.info("No delivery channel for %s; remote payload dropped", user_id)
            return False
        return await dispatcher.present_remote(payload)

    async def stop_all(self) -> None:
        active = list(self._active)
        for user_id in active:
            await self.stop(user_id)
        logger.info("Stopped %d notification listener(s)", len(active))


__all__ = ["DEFAULT_RETAINED_DISPATCHERS", "DeliveryRegistry", "PresenterFactory"]
