"""Regen prediction configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from tick_regen.types import ResourceModel, ResourceType


def _default_models() -> dict[ResourceType, ResourceModel]:
    return {
        "energy": ResourceModel.TICK_PERFECT,
        "mana": ResourceModel.LEARNED,
        "rage": ResourceModel.UNPREDICTABLE,
        "focus": ResourceModel.UNPREDICTABLE,
    }


@dataclass(frozen=True)
class RegenConfig:
    """Immutable startup constants for the regen prediction engine.

    Attributes:
        window_duration: Seconds regen stays suppressed after a spend.
        window_edge_margin: Seconds shaved off the remaining window when
            simulating in-window ticks, so a tick near the boundary is
            never counted at the (usually lower) suppressed rate by mistake.
        tick_period: Nominal seconds between regen ticks.
        spike_fraction: Gains above this fraction of max pool are spikes.
        noise_fraction: Gains below this fraction of max pool are noise.
        history_capacity: Tick amounts kept per (resource, phase) bucket.
        ready_buffer: Seconds added to every timed prediction.
        safety_margin: Fraction of the rate added to the need before rounding.
        heuristic_fraction: Cold-start rate as a fraction of max pool.
        sample_interval: Seconds between pool samples.
        energy_per_tick: Default amount per tick for tick-perfect resources.
        suppressed_resource: Resource whose spending arms the window.
        models: Prediction model per resource type. Unlisted types are
            unpredictable.
    """

    window_duration: float = 5.0
    window_edge_margin: float = 0.3
    tick_period: float = 2.0
    spike_fraction: float = 0.10
    noise_fraction: float = 0.003
    history_capacity: int = 5
    ready_buffer: float = 0.15
    safety_margin: float = 0.05
    heuristic_fraction: float = 0.02
    sample_interval: float = 0.1
    energy_per_tick: float = 20
    suppressed_resource: ResourceType = "mana"
    models: Mapping[ResourceType, ResourceModel] = field(default_factory=_default_models)

    def __post_init__(self) -> None:
        object.__setattr__(self, "models", MappingProxyType(dict(self.models)))
        if self.window_duration <= 0:
            raise ValueError(
                f"window_duration must be > 0, got {self.window_duration}"
            )
        if not 0 <= self.window_edge_margin < self.window_duration:
            raise ValueError(
                "window_edge_margin must be >= 0 and shorter than the window, "
                f"got {self.window_edge_margin}"
            )
        if self.tick_period <= 0:
            raise ValueError(f"tick_period must be > 0, got {self.tick_period}")
        if not 0 < self.noise_fraction < self.spike_fraction <= 1:
            raise ValueError(
                "expected 0 < noise_fraction < spike_fraction <= 1, got "
                f"{self.noise_fraction} and {self.spike_fraction}"
            )
        if self.history_capacity < 1:
            raise ValueError(
                f"history_capacity must be >= 1, got {self.history_capacity}"
            )
        if self.ready_buffer < 0:
            raise ValueError(f"ready_buffer must be >= 0, got {self.ready_buffer}")
        if self.safety_margin < 0:
            raise ValueError(f"safety_margin must be >= 0, got {self.safety_margin}")
        if not 0 < self.heuristic_fraction <= 1:
            raise ValueError(
                f"heuristic_fraction must be in (0, 1], got {self.heuristic_fraction}"
            )
        if self.sample_interval <= 0:
            raise ValueError(
                f"sample_interval must be > 0, got {self.sample_interval}"
            )
        if self.energy_per_tick <= 0:
            raise ValueError(
                f"energy_per_tick must be > 0, got {self.energy_per_tick}"
            )

    def model_for(self, resource: ResourceType) -> ResourceModel:
        return self.models.get(resource, ResourceModel.UNPREDICTABLE)

    def tracked_resources(self) -> list[ResourceType]:
        """Resources worth sampling, i.e. everything with a timed model."""
        return [
            name
            for name, model in self.models.items()
            if model is not ResourceModel.UNPREDICTABLE
        ]
