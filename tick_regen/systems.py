"""Sampling driver - feeds pool readings into the window and estimator."""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from tick_regen.config import RegenConfig
from tick_regen.signals import TICK_OBSERVED, WINDOW_ARMED
from tick_regen.types import ResourceType, SampleOutcome, System, TickContext

if TYPE_CHECKING:
    from tick_regen.estimator import RateEstimator
    from tick_regen.signals import SignalBus
    from tick_regen.sources import ResourceSource
    from tick_regen.window import SuppressionWindow

_TICK_OUTCOMES = (SampleOutcome.TICK, SampleOutcome.TICK_UNRECORDED, SampleOutcome.SPIKE)


def sample_pools(
    source: ResourceSource,
    window: SuppressionWindow,
    estimator: RateEstimator,
    config: RegenConfig,
    now: float,
    bus: SignalBus | None = None,
) -> dict[ResourceType, SampleOutcome]:
    """Take one reading of every tracked pool. Returns outcome per resource.

    Resources the player does not have (no maximum) are skipped.
    """
    outcomes: dict[ResourceType, SampleOutcome] = {}
    for resource in config.tracked_resources():
        current = source.current(resource)
        maximum = source.maximum(resource)
        if current is None or maximum is None or maximum <= 0:
            continue

        if resource == config.suppressed_resource:
            if window.observe(current, now) and bus is not None:
                bus.publish(WINDOW_ARMED, resource=resource, time=now)

        before = estimator.state(resource).previous_reading
        outcome = estimator.sample(resource, current, maximum, now)
        outcomes[resource] = outcome
        if bus is not None and outcome in _TICK_OUTCOMES:
            bus.publish(
                TICK_OBSERVED,
                resource=resource,
                amount=current - before,
                outcome=outcome,
                time=now,
            )
    return outcomes


def make_sampling_system(
    source: ResourceSource,
    window: SuppressionWindow,
    estimator: RateEstimator,
    config: RegenConfig | None = None,
    bus: SignalBus | None = None,
    clock: Callable[[], float] | None = None,
) -> System:
    """Return a system that samples every tracked pool once per call.

    Register it with ``engine.every(config.sample_interval, system)``.
    Timestamps come from *clock* when given, else from the tick context.
    """
    config = config or RegenConfig()

    def sampling_system(ctx: TickContext) -> None:
        now = clock() if clock is not None else ctx.elapsed
        sample_pools(source, window, estimator, config, now, bus)

    return sampling_system
