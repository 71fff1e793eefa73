"""Tick-phase oracle protocol and the reference tick-clock implementation."""
from __future__ import annotations

import math
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from tick_regen.config import RegenConfig
from tick_regen.types import Phase, ResourceModel, ResourceType

if TYPE_CHECKING:
    from tick_regen.estimator import RateEstimator
    from tick_regen.sources import ResourceSource
    from tick_regen.window import SuppressionWindow


@runtime_checkable
class TickOracle(Protocol):
    """Canonical per-resource tick timing.

    The predictor only ever reads from an oracle; the estimator pushes sync
    hints into it whenever it sees a tick on its own.
    """

    def expected_amount_per_tick(self, resource: ResourceType) -> float:
        ...

    def nominal_tick_period(self, resource: ResourceType) -> float:
        ...

    def time_until_next_tick(self, resource: ResourceType, now: float) -> float:
        """Seconds until the next tick. 0 if the pool is full."""
        ...

    def time_until_next_full_phase_tick(
        self, resource: ResourceType, now: float
    ) -> float:
        """Seconds until the first tick after the suppression window ends."""
        ...

    def notify_tick_observed_at(self, resource: ResourceType, timestamp: float) -> None:
        ...


class PhaseOracle:
    """Tick clock anchored on observed ticks.

    Conforms to the TickOracle protocol. Regen ticks keep firing every
    period whether or not the pool can show them, so the anchor is projected
    forward by whole periods on every read instead of going stale.

    Args:
        source: Pool queries, used to report 0 at cap.
        window: The suppression window, for full-phase timing.
        config: Tick period and default tick-perfect amount.
        estimator: Supplies learned amounts for learned resources.
    """

    def __init__(
        self,
        source: ResourceSource,
        window: SuppressionWindow,
        config: RegenConfig | None = None,
        estimator: RateEstimator | None = None,
    ) -> None:
        self._source = source
        self._window = window
        self._config = config or RegenConfig()
        self._estimator = estimator
        self._last_tick: dict[ResourceType, float] = {}

    # --- Sync ---

    def notify_tick_observed_at(self, resource: ResourceType, timestamp: float) -> None:
        self._last_tick[resource] = timestamp

    def last_tick(self, resource: ResourceType) -> float | None:
        return self._last_tick.get(resource)

    def anchor(self, resource: ResourceType, now: float) -> float | None:
        """Most recent tick boundary at or before *now*, phantom ticks included."""
        last = self._last_tick.get(resource)
        if last is None:
            return None
        period = self.nominal_tick_period(resource)
        since = now - last
        if since < period:
            return last
        return last + math.floor(since / period) * period

    # --- Rates ---

    def expected_amount_per_tick(self, resource: ResourceType) -> float:
        if self._config.model_for(resource) is ResourceModel.TICK_PERFECT:
            return self._config.energy_per_tick
        if self._estimator is None:
            return 0.0
        phase = (
            Phase.UNSUPPRESSED
            if resource == self._config.suppressed_resource
            else Phase.STEADY
        )
        return float(self._estimator.rate(resource, phase) or 0)

    def nominal_tick_period(self, resource: ResourceType) -> float:
        return self._config.tick_period

    # --- Timing ---

    def _capped(self, resource: ResourceType) -> bool:
        current = self._source.current(resource)
        maximum = self._source.maximum(resource)
        if current is None or maximum is None or maximum <= 0:
            return False
        return current >= maximum

    def time_until_next_tick(self, resource: ResourceType, now: float) -> float:
        if self._capped(resource):
            return 0.0
        period = self.nominal_tick_period(resource)
        anchor = self.anchor(resource, now)
        if anchor is None:
            # Worst case: a tick was just missed.
            return period
        return min(period, period - (now - anchor))

    def full_phase_target(self, resource: ResourceType) -> float | None:
        """Time of the first tick boundary at or after the window end.

        Tick boundaries are periodic, so any observed tick pins them; the
        target only moves when a re-arm moves the window end. None without a
        trigger or tick data.
        """
        window_end = self._window.ends_at()
        last = self._last_tick.get(resource)
        if window_end is None or last is None:
            return None
        period = self.nominal_tick_period(resource)
        return last + math.ceil((window_end - last) / period) * period

    def time_until_next_full_phase_tick(
        self, resource: ResourceType, now: float
    ) -> float:
        if resource != self._config.suppressed_resource:
            return self.time_until_next_tick(resource, now)
        remaining = self._window.time_remaining(now)
        if remaining <= 0:
            return self.time_until_next_tick(resource, now)

        period = self.nominal_tick_period(resource)
        target = self.full_phase_target(resource)
        if target is None:
            return remaining + period
        # At least one period past the last tick.
        return max(target, self._last_tick[resource] + period) - now

    def tick_progress(self, resource: ResourceType, now: float) -> float:
        """Fraction (0-1) of the way to the next tick, for a tick indicator."""
        if self._capped(resource):
            return 0.0
        anchor = self.anchor(resource, now)
        if anchor is None:
            return 0.0
        progress = (now - anchor) / self.nominal_tick_period(resource)
        return min(1.0, max(0.0, progress))

    def full_phase_progress(self, resource: ResourceType, now: float) -> float:
        """Fraction (0-1) of the wait for the first full-rate tick.

        One countdown runs from the spend to that tick, across the window
        end, then hands over to the plain tick progress.
        """
        if resource != self._config.suppressed_resource:
            return self.tick_progress(resource, now)
        trigger = self._window.last_trigger_time
        target = self.full_phase_target(resource)
        if trigger is None or target is None:
            if self._window.is_active(now):
                return 0.0
            return self.tick_progress(resource, now)
        if now >= target or target <= trigger:
            return self.tick_progress(resource, now)
        return min(1.0, max(0.0, (now - trigger) / (target - trigger)))

    # --- Serialization ---

    def snapshot(self) -> dict[str, float]:
        return dict(self._last_tick)

    def restore(self, data: dict[str, float]) -> None:
        self._last_tick = dict(data)
