"""In-memory pub/sub for regen events, flushed once per engine tick."""
from __future__ import annotations

import logging
from typing import Any, Callable

from tick_regen.types import System, TickContext

logger = logging.getLogger(__name__)

# Published by the host when the player's own action completed.
ACTION_SUCCEEDED = "action_succeeded"
# Published by the forecaster when the sampler sees a regen tick.
TICK_OBSERVED = "tick_observed"
# Published by the forecaster when a pool decrease arms the window.
WINDOW_ARMED = "window_armed"

_Handler = Callable[[str, dict[str, Any]], None]


class SignalBus:
    """Queues signals and delivers them on flush, in publish order."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[_Handler]] = {}
        self._queue: list[tuple[str, dict[str, Any]]] = []

    def subscribe(self, signal_name: str, handler: _Handler) -> None:
        self._subscribers.setdefault(signal_name, []).append(handler)

    def unsubscribe(self, signal_name: str, handler: _Handler) -> None:
        handlers = self._subscribers.get(signal_name)
        if handlers is None:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            pass

    def publish(self, signal_name: str, **data: Any) -> None:
        self._queue.append((signal_name, data))

    def pending(self) -> int:
        return len(self._queue)

    def flush(self) -> int:
        """Deliver everything queued so far. Returns the number delivered.

        Signals published by handlers during a flush wait for the next one.
        """
        snapshot = self._queue
        self._queue = []
        for signal_name, data in snapshot:
            handlers = self._subscribers.get(signal_name, [])
            if not handlers:
                logger.debug("Signal %r had no subscribers", signal_name)
            for handler in list(handlers):
                handler(signal_name, data)
        return len(snapshot)

    def clear(self) -> None:
        self._queue.clear()


def make_signal_system(bus: SignalBus) -> System:
    def signal_system(ctx: TickContext) -> None:
        bus.flush()

    return signal_system
