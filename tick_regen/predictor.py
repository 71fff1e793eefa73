"""AffordabilityPredictor - seconds until an ability's cost can be paid."""
from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from tick_regen.config import RegenConfig
from tick_regen.types import Phase, PredictionRequest, ResourceModel, ResourceType

if TYPE_CHECKING:
    from tick_regen.estimator import RateEstimator
    from tick_regen.oracle import TickOracle
    from tick_regen.window import SuppressionWindow

logger = logging.getLogger(__name__)


class AffordabilityPredictor:
    """Turns "resource still needed" into "seconds until affordable".

    One strategy per resource model:

    - tick-perfect: fixed amount every period, timed off the oracle;
    - learned: observed rates for the suppressed and unsuppressed phases,
      simulating ticks inside the remaining window before switching rate;
    - unpredictable: always 0, meaning "show a plain fill gauge instead".

    Every timed result carries ``ready_buffer`` so the countdown never ends
    a frame before the tick lands in the pool. Missing data degrades in
    order: current rate, last good rate, heuristic rate, no prediction.
    """

    def __init__(
        self,
        window: SuppressionWindow,
        estimator: RateEstimator,
        oracle: TickOracle | None = None,
        config: RegenConfig | None = None,
    ) -> None:
        self._window = window
        self._estimator = estimator
        self._oracle = oracle
        self._config = config or RegenConfig()
        self._last_log_key: str | None = None

    @property
    def oracle(self) -> TickOracle | None:
        return self._oracle

    def predict(self, request: PredictionRequest, now: float) -> float:
        return self.time_until_affordable(
            request.resource, request.needed, request.current, request.maximum, now
        )

    def time_until_affordable(
        self,
        resource: ResourceType,
        needed: float,
        current: float,
        maximum: float,
        now: float,
    ) -> float:
        if needed <= 0:
            return 0.0

        model = self._config.model_for(resource)
        if model is ResourceModel.TICK_PERFECT:
            return self._tick_perfect(resource, needed, now)
        if model is ResourceModel.LEARNED:
            if resource == self._config.suppressed_resource:
                # Self-heal: a spend the sampler has not seen yet still counts.
                self._window.is_active(now, current)
            return self._learned(resource, needed, maximum, now)
        return 0.0

    # --- Oracle reads with fallbacks ---

    def _period(self, resource: ResourceType) -> float:
        if self._oracle is None:
            return self._config.tick_period
        return self._oracle.nominal_tick_period(resource)

    def _next_tick(self, resource: ResourceType, now: float) -> float:
        if self._oracle is None:
            return self._period(resource)
        return self._oracle.time_until_next_tick(resource, now)

    def _next_full_phase_tick(
        self, resource: ResourceType, now: float, suppressed: bool
    ) -> float:
        if self._oracle is not None:
            return self._oracle.time_until_next_full_phase_tick(resource, now)
        if suppressed:
            return self._window.time_remaining(now) + self._period(resource)
        return self._next_tick(resource, now)

    def _amount_per_tick(self, resource: ResourceType) -> float:
        if self._oracle is not None:
            amount = self._oracle.expected_amount_per_tick(resource)
            if amount > 0:
                return amount
        return self._config.energy_per_tick

    # --- Strategies ---

    def _tick_perfect(self, resource: ResourceType, needed: float, now: float) -> float:
        amount = self._amount_per_tick(resource)
        period = self._period(resource)
        next_tick = self._next_tick(resource, now)

        ticks = math.ceil(needed / amount)
        if ticks <= 1:
            result = next_tick
        else:
            result = next_tick + (ticks - 1) * period
        return result + self._config.ready_buffer

    def _learned(
        self, resource: ResourceType, needed: float, maximum: float, now: float
    ) -> float:
        config = self._config
        period = self._period(resource)
        suppressed = resource == config.suppressed_resource and self._window.is_active(now)

        rate_suppressed = self._estimator.rate(resource, Phase.SUPPRESSED) or 0
        if resource == config.suppressed_resource:
            rate_unsuppressed = self._estimator.rate(resource, Phase.UNSUPPRESSED) or 0
        else:
            rate_unsuppressed = self._estimator.rate(resource, Phase.STEADY) or 0

        if rate_unsuppressed <= 0:
            estimated = maximum * config.heuristic_fraction
            if estimated <= 0:
                estimated = 1.0
            first = (
                self._next_full_phase_tick(resource, now, suppressed)
                if suppressed
                else self._next_tick(resource, now)
            )
            ticks = math.ceil(needed / estimated)
            result = first + (ticks - 1) * period + config.ready_buffer
            self._log(
                f"{resource}:{needed}:{ticks}:cold",
                "%s need %g, no rate data, fallback %.0f/tick, %d ticks -> %.2fs",
                resource, needed, estimated, ticks, result,
            )
            return result

        next_tick = self._next_tick(resource, now)
        gained = 0.0
        in_window_ticks = 0

        if suppressed and rate_suppressed > 0:
            time_left = max(
                0.0, self._window.time_remaining(now) - config.window_edge_margin
            )
            if next_tick < time_left:
                gained = rate_suppressed
                elapsed = next_tick
                in_window_ticks = 1
                while elapsed + period < time_left and gained < needed:
                    elapsed += period
                    gained += rate_suppressed
                    in_window_ticks += 1

            if gained >= needed:
                ticks = math.ceil(
                    (needed + rate_suppressed * config.safety_margin) / rate_suppressed
                )
                result = next_tick + (ticks - 1) * period + config.ready_buffer
                self._log(
                    f"{resource}:{needed}:{ticks}:window",
                    "%s need %g, suppressed rate %d, %d ticks -> %.2fs (inside window)",
                    resource, needed, rate_suppressed, ticks, result,
                )
                return result

        still_needed = needed - gained
        ticks_after = math.ceil(
            (still_needed + rate_unsuppressed * config.safety_margin) / rate_unsuppressed
        )
        full_tick = self._next_full_phase_tick(resource, now, suppressed)
        result = full_tick + (ticks_after - 1) * period + config.ready_buffer
        self._log(
            f"{resource}:{needed}:{in_window_ticks}:{ticks_after}:{suppressed}",
            "%s need %g, %d window ticks @%d = %g, then %d ticks @%d -> %.2fs",
            resource, needed, in_window_ticks, rate_suppressed, gained,
            ticks_after, rate_unsuppressed, result,
        )
        return result

    def _log(self, key: str, message: str, *args: object) -> None:
        # Predictions are read every frame; only log when the answer changes shape.
        if key == self._last_log_key:
            return
        self._last_log_key = key
        logger.debug(message, *args)
