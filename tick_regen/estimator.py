"""RateEstimator - learns per-tick regen amounts from passive pool samples."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tick_regen.config import RegenConfig
from tick_regen.history import TickHistory
from tick_regen.types import Phase, ResourceModel, ResourceType, SampleOutcome

if TYPE_CHECKING:
    from tick_regen.oracle import TickOracle
    from tick_regen.window import SuppressionWindow

logger = logging.getLogger(__name__)

# Tick-perfect filter: ticks are never closer than this fraction of a period
# (refunds land instantly), and must be within this tolerance of the
# expected amount.
_MIN_TICK_SPACING = 0.75
_AMOUNT_TOLERANCE = 0.25


@dataclass
class SampleState:
    """Last two readings and the tick clock of one resource."""

    previous_reading: float = 0.0
    prior_reading: float = 0.0
    last_tick_time: float | None = None
    samples_seen: int = 0


class RateEstimator:
    """Classifies pool samples and keeps one TickHistory per (resource, phase).

    Learned resources use fractional thresholds: gains above
    ``spike_fraction`` of max are windfalls (potions, drains to self) and
    below ``noise_fraction`` are rounding. Tick-perfect resources use the
    expected tick amount instead, which also rejects instant refunds.
    """

    def __init__(
        self,
        window: SuppressionWindow,
        config: RegenConfig | None = None,
        oracle: TickOracle | None = None,
    ) -> None:
        self._window = window
        self._config = config or RegenConfig()
        self._oracle = oracle
        self._states: dict[ResourceType, SampleState] = {}
        self._histories: dict[tuple[ResourceType, Phase], TickHistory] = {}

    def bind_oracle(self, oracle: TickOracle | None) -> None:
        """Set where tick sync hints go."""
        self._oracle = oracle

    # --- Queries ---

    def state(self, resource: ResourceType) -> SampleState:
        if resource not in self._states:
            self._states[resource] = SampleState()
        return self._states[resource]

    def history(self, resource: ResourceType, phase: Phase) -> TickHistory:
        key = (resource, phase)
        if key not in self._histories:
            self._histories[key] = TickHistory(self._config.history_capacity)
        return self._histories[key]

    def rate(self, resource: ResourceType, phase: Phase) -> int | None:
        """Conservative rate, else last good rate, else None."""
        history = self._histories.get((resource, phase))
        if history is None:
            return None
        return history.rate()

    def last_tick_time(self, resource: ResourceType) -> float | None:
        state = self._states.get(resource)
        return state.last_tick_time if state is not None else None

    def phase_for(self, resource: ResourceType, now: float) -> Phase:
        if resource != self._config.suppressed_resource:
            return Phase.STEADY
        if self._window.is_active(now):
            return Phase.SUPPRESSED
        return Phase.UNSUPPRESSED

    # --- Sampling ---

    def sample(
        self, resource: ResourceType, current: float, maximum: float, now: float
    ) -> SampleOutcome:
        """Feed one pool reading taken at *now*. Returns how it was classified."""
        state = self.state(resource)
        outcome = SampleOutcome.NONE
        fixed = self._config.model_for(resource) is ResourceModel.TICK_PERFECT

        # The very first reading has nothing to diff against.
        if maximum > 0 and state.samples_seen > 0:
            if current > state.previous_reading:
                gain = current - state.previous_reading
                if fixed:
                    outcome = self._classify_fixed(
                        resource, state, gain, current, maximum, now
                    )
                else:
                    outcome = self._classify_fractional(
                        resource, state, gain, maximum, now
                    )

            # Fixed ticks are invisible whenever spending outpaces them, not
            # only at cap. A tick marked at *now* makes this a no-op.
            if current >= maximum or fixed:
                advanced = self._advance_phantom(resource, state, now)
                if advanced and outcome is SampleOutcome.NONE:
                    outcome = SampleOutcome.PHANTOM

        state.prior_reading = state.previous_reading
        state.previous_reading = current
        state.samples_seen += 1
        return outcome

    def _classify_fractional(
        self,
        resource: ResourceType,
        state: SampleState,
        gain: float,
        maximum: float,
        now: float,
    ) -> SampleOutcome:
        fraction = gain / maximum

        if fraction > self._config.spike_fraction:
            self._mark_tick(resource, state, now)
            logger.debug(
                "%s +%g (%.1f%%) - spike ignored (>%.0f%%)",
                resource,
                gain,
                fraction * 100,
                self._config.spike_fraction * 100,
            )
            return SampleOutcome.SPIKE

        if fraction < self._config.noise_fraction:
            logger.debug(
                "%s +%g (%.2f%%) - too small to be a tick", resource, gain, fraction * 100
            )
            return SampleOutcome.NOISE

        self._mark_tick(resource, state, now)

        # A sample taken mid-spend shows tick minus spend, not the tick.
        if state.previous_reading < state.prior_reading:
            logger.debug(
                "%s +%g - skipped, pool was being spent (prior=%g previous=%g)",
                resource,
                gain,
                state.prior_reading,
                state.previous_reading,
            )
            return SampleOutcome.TICK_UNRECORDED

        phase = self.phase_for(resource, now)
        history = self.history(resource, phase)
        rate = history.record(gain)
        logger.debug(
            "%s +%g (%.1f%%) -> %s bucket [%d ticks, rate=%d]",
            resource,
            gain,
            fraction * 100,
            phase.value,
            len(history),
            rate,
        )
        return SampleOutcome.TICK

    def _classify_fixed(
        self,
        resource: ResourceType,
        state: SampleState,
        gain: float,
        current: float,
        maximum: float,
        now: float,
    ) -> SampleOutcome:
        expected = self._expected_amount(resource)
        period = self._config.tick_period
        too_soon = (
            state.last_tick_time is not None
            and now - state.last_tick_time < period * _MIN_TICK_SPACING
        )
        low = expected * (1 - _AMOUNT_TOLERANCE)
        high = expected * (1 + _AMOUNT_TOLERANCE)

        if too_soon:
            logger.debug("%s +%g - too soon after last tick, not a tick", resource, gain)
            return SampleOutcome.NOISE
        if low <= gain <= high:
            self._mark_tick(resource, state, now)
            self.history(resource, Phase.STEADY).record(gain)
            logger.debug("%s +%g -> tick", resource, gain)
            return SampleOutcome.TICK
        if current >= maximum and gain < low:
            # Last tick before the cap only shows what fit.
            self._mark_tick(resource, state, now)
            logger.debug("%s +%g -> partial tick at cap", resource, gain)
            return SampleOutcome.TICK_UNRECORDED
        logger.debug("%s +%g - off-size gain (expected ~%g), not a tick", resource, gain, expected)
        return SampleOutcome.SPIKE if gain > high else SampleOutcome.NOISE

    def _expected_amount(self, resource: ResourceType) -> float:
        if self._oracle is not None:
            expected = self._oracle.expected_amount_per_tick(resource)
            if expected > 0:
                return expected
        return self._config.energy_per_tick

    def _mark_tick(self, resource: ResourceType, state: SampleState, now: float) -> None:
        state.last_tick_time = now
        if self._oracle is not None:
            self._oracle.notify_tick_observed_at(resource, now)

    def _advance_phantom(
        self, resource: ResourceType, state: SampleState, now: float
    ) -> bool:
        """Step the tick clock over ticks the pool could not show."""
        if state.last_tick_time is None:
            return False
        period = self._config.tick_period
        if now - state.last_tick_time < period:
            return False
        while now - state.last_tick_time >= period:
            state.last_tick_time += period
        logger.debug("%s phantom tick, clock now %.3f", resource, state.last_tick_time)
        if self._oracle is not None:
            self._oracle.notify_tick_observed_at(resource, state.last_tick_time)
        return True

    # --- Serialization ---

    def snapshot(self) -> dict[str, Any]:
        """Learned histories and tick clocks. Readings are not kept."""
        return {
            "histories": [
                {"resource": resource, "phase": phase.value, **history.snapshot()}
                for (resource, phase), history in self._histories.items()
            ],
            "tick_times": {
                resource: state.last_tick_time
                for resource, state in self._states.items()
                if state.last_tick_time is not None
            },
        }

    def restore(self, data: dict[str, Any]) -> None:
        self._histories.clear()
        self._states.clear()
        for entry in data.get("histories", []):
            history = self.history(entry["resource"], Phase(entry["phase"]))
            history.restore(entry)
        for resource, tick_time in data.get("tick_times", {}).items():
            self.state(resource).last_tick_time = tick_time
