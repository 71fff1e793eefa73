"""SuppressionWindow - the post-spend reduced-regen window."""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class SuppressionWindow:
    """Tracks a fixed-duration window armed by every observed pool decrease.

    Any decrease arms it, whether the player spent the resource or something
    drained it; the pool delta is the only signal available.
    """

    def __init__(self, duration: float = 5.0) -> None:
        if duration <= 0:
            raise ValueError(f"duration must be > 0, got {duration}")
        self._duration = duration
        self._last_trigger_time: float | None = None
        self._last_reading: float | None = None

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def last_trigger_time(self) -> float | None:
        return self._last_trigger_time

    @property
    def last_reading(self) -> float | None:
        return self._last_reading

    def record_decrease(self, now: float) -> None:
        """(Re)arm the window at *now*."""
        self._last_trigger_time = now
        logger.debug("Suppression window armed at %.3f", now)

    def observe(self, current: float, now: float) -> bool:
        """Feed a pool reading. Returns True if it armed the window."""
        previous = self._last_reading
        self._last_reading = current
        if previous is not None and current < previous:
            self.record_decrease(now)
            return True
        return False

    def on_action_succeeded(self, current: float, now: float) -> bool:
        """Hint that the player acted; arms only on a real decrease.

        Free actions leave the pool untouched and must not arm the window.
        """
        return self.observe(current, now)

    def is_active(self, now: float, current: float | None = None) -> bool:
        """Is regen suppressed at *now*?

        A fresher *current* reading that reveals a decrease not yet seen by
        the sampler re-arms the window first.
        """
        if current is not None:
            self.observe(current, now)
        if self._last_trigger_time is None:
            return False
        return now - self._last_trigger_time < self._duration

    def time_remaining(self, now: float, current: float | None = None) -> float:
        """Seconds until the window closes. 0 if inactive or never armed."""
        if not self.is_active(now, current) or self._last_trigger_time is None:
            return 0.0
        return max(0.0, self._duration - (now - self._last_trigger_time))

    def time_since_trigger(self, now: float) -> float | None:
        if self._last_trigger_time is None:
            return None
        return now - self._last_trigger_time

    def ends_at(self) -> float | None:
        if self._last_trigger_time is None:
            return None
        return self._last_trigger_time + self._duration

    def snapshot(self) -> dict[str, float | None]:
        return {"last_trigger_time": self._last_trigger_time}

    def restore(self, data: dict[str, float | None]) -> None:
        self._last_trigger_time = data.get("last_trigger_time")
        self._last_reading = None
