"""TickHistory - bounded record of observed regen tick amounts."""
from __future__ import annotations

import math
from collections import deque
from typing import Any


class TickHistory:
    """Rolling window of tick amounts reduced to a conservative rate.

    The rate is the floor of the smallest amount held. Over-estimating regen
    makes an ability look ready before it is, so the minimum is used rather
    than an average.
    """

    def __init__(self, capacity: int = 5) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._samples: deque[float] = deque(maxlen=capacity)
        self._conservative_rate: int | None = None
        self._last_good_rate: int | None = None

    @property
    def capacity(self) -> int:
        return self._samples.maxlen or 0

    @property
    def samples(self) -> list[float]:
        return list(self._samples)

    @property
    def conservative_rate(self) -> int | None:
        return self._conservative_rate

    @property
    def last_good_rate(self) -> int | None:
        return self._last_good_rate

    def __len__(self) -> int:
        return len(self._samples)

    def record(self, amount: float) -> int:
        """Insert a tick amount, evicting the oldest. Returns the new rate."""
        self._samples.append(amount)
        rate = math.floor(min(self._samples))
        self._conservative_rate = rate
        self._last_good_rate = rate
        return rate

    def rate(self) -> int | None:
        """Current rate, falling back to the last good one."""
        if self._conservative_rate is not None:
            return self._conservative_rate
        return self._last_good_rate

    def reset(self) -> None:
        """Drop samples. The last good rate is kept."""
        self._samples.clear()
        self._conservative_rate = None

    def snapshot(self) -> dict[str, Any]:
        return {
            "samples": list(self._samples),
            "last_good_rate": self._last_good_rate,
        }

    def restore(self, data: dict[str, Any]) -> None:
        self._samples.clear()
        self._samples.extend(data.get("samples", []))
        self._conservative_rate = (
            math.floor(min(self._samples)) if self._samples else None
        )
        self._last_good_rate = data.get("last_good_rate")
