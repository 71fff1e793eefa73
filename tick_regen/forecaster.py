"""RegenForecaster - owns the regen components and answers the HUD."""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Callable

from tick_regen.config import RegenConfig
from tick_regen.estimator import RateEstimator
from tick_regen.oracle import PhaseOracle, TickOracle
from tick_regen.predictor import AffordabilityPredictor
from tick_regen.signals import ACTION_SUCCEEDED, SignalBus, make_signal_system
from tick_regen.systems import make_sampling_system, sample_pools
from tick_regen.types import PredictionRequest, ResourceType, SampleOutcome
from tick_regen.window import SuppressionWindow

if TYPE_CHECKING:
    from tick_regen.engine import Engine, Periodic
    from tick_regen.sources import ResourceSource

logger = logging.getLogger(__name__)


class RegenForecaster:
    """Composition root for window, estimator, oracle and predictor.

    Construct one per player and hand it to whatever drives sampling. When
    no oracle is given, a PhaseOracle fed by the estimator's sync hints is
    used.

    Args:
        source: Pool and cost queries.
        config: Startup constants.
        oracle: Tick-phase oracle; defaults to PhaseOracle.
        bus: Signal bus for the action hint and tick/window announcements.
        clock: Seconds, monotonic. Use ``engine.clock.now`` to run on
            simulated time.
    """

    def __init__(
        self,
        source: ResourceSource,
        config: RegenConfig | None = None,
        oracle: TickOracle | None = None,
        bus: SignalBus | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._config = config or RegenConfig()
        self._bus = bus
        self._clock = clock

        self._window = SuppressionWindow(self._config.window_duration)
        self._estimator = RateEstimator(self._window, self._config)
        if oracle is None:
            oracle = PhaseOracle(source, self._window, self._config, self._estimator)
        self._oracle = oracle
        self._estimator.bind_oracle(oracle)
        self._predictor = AffordabilityPredictor(
            self._window, self._estimator, oracle, self._config
        )

        if bus is not None:
            bus.subscribe(ACTION_SUCCEEDED, self._on_action_signal)

    # --- Components ---

    @property
    def config(self) -> RegenConfig:
        return self._config

    @property
    def window(self) -> SuppressionWindow:
        return self._window

    @property
    def estimator(self) -> RateEstimator:
        return self._estimator

    @property
    def oracle(self) -> TickOracle:
        return self._oracle

    @property
    def predictor(self) -> AffordabilityPredictor:
        return self._predictor

    # --- Prediction ---

    def request_for(self, ability_id: int | str) -> PredictionRequest | None:
        """Build a prediction request, or None if the ability is free/unknown."""
        cost = self._source.cost(ability_id)
        if cost is None:
            return None
        amount, resource = cost
        if amount <= 0:
            return None
        current = self._source.current(resource)
        maximum = self._source.maximum(resource)
        if current is None or maximum is None:
            return None
        return PredictionRequest(
            resource=resource,
            current=current,
            maximum=maximum,
            needed=amount - current,
        )

    def time_until_affordable(self, ability_id: int | str) -> float:
        """Seconds until *ability_id* can be paid for. 0 if affordable or unknown."""
        request = self.request_for(ability_id)
        if request is None:
            return 0.0
        return self._predictor.predict(request, self._clock())

    def is_suppressed(self) -> bool:
        return self._window.is_active(self._clock(), self._suppressed_reading())

    def suppression_time_remaining(self) -> float:
        return self._window.time_remaining(self._clock(), self._suppressed_reading())

    def tick_progress(self, resource: ResourceType) -> float:
        """Progress toward the next tick, 0 when the oracle cannot say."""
        if isinstance(self._oracle, PhaseOracle):
            return self._oracle.tick_progress(resource, self._clock())
        return 0.0

    def _suppressed_reading(self) -> float | None:
        return self._source.current(self._config.suppressed_resource)

    # --- Sampling ---

    def sample(self) -> dict[ResourceType, SampleOutcome]:
        """Take one reading of every tracked pool now."""
        return sample_pools(
            self._source,
            self._window,
            self._estimator,
            self._config,
            self._clock(),
            self._bus,
        )

    def on_action_succeeded(self) -> bool:
        """Re-check the pool after the player's own action. True if armed."""
        current = self._suppressed_reading()
        if current is None:
            return False
        return self._window.on_action_succeeded(current, self._clock())

    def _on_action_signal(self, signal_name: str, data: dict[str, Any]) -> None:
        self.on_action_succeeded()

    def attach(self, engine: Engine) -> Periodic:
        """Register sampling (and signal delivery, if a bus is set) on *engine*."""
        system = make_sampling_system(
            self._source,
            self._window,
            self._estimator,
            self._config,
            self._bus,
            self._clock,
        )
        periodic = engine.every(self._config.sample_interval, system, name="regen_sampling")
        if self._bus is not None:
            engine.add_system(make_signal_system(self._bus))
        logger.debug(
            "Regen sampling attached, tracking %s", ", ".join(self._config.tracked_resources())
        )
        return periodic

    # --- Serialization ---

    def snapshot(self) -> dict[str, Any]:
        """Learned state as plain data. Pool readings are not included."""
        data: dict[str, Any] = {
            "window": self._window.snapshot(),
            "estimator": self._estimator.snapshot(),
        }
        if isinstance(self._oracle, PhaseOracle):
            data["oracle"] = self._oracle.snapshot()
        return data

    def restore(self, data: dict[str, Any]) -> None:
        self._window.restore(data.get("window", {}))
        self._estimator.restore(data.get("estimator", {}))
        if isinstance(self._oracle, PhaseOracle) and "oracle" in data:
            self._oracle.restore(data["oracle"])
