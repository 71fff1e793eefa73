"""Shared types for the regen prediction engine."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

ResourceType = str


@dataclass(frozen=True, slots=True)
class TickContext:
    tick_number: int
    dt: float
    elapsed: float
    request_stop: Callable[[], None]


System = Callable[[TickContext], None]


class ResourceModel(Enum):
    """How a resource regenerates, and therefore how it is predicted."""

    TICK_PERFECT = "tick_perfect"
    LEARNED = "learned"
    UNPREDICTABLE = "unpredictable"


class Phase(Enum):
    """Regen phase a tick was observed in."""

    STEADY = "steady"
    SUPPRESSED = "suppressed"
    UNSUPPRESSED = "unsuppressed"


class SampleOutcome(Enum):
    """Classification of one pool sample by the estimator."""

    NONE = "none"
    TICK = "tick"
    TICK_UNRECORDED = "tick_unrecorded"
    SPIKE = "spike"
    NOISE = "noise"
    PHANTOM = "phantom"


@dataclass(frozen=True)
class PredictionRequest:
    """One affordability question, built fresh for every prediction."""

    resource: ResourceType
    current: float
    maximum: float
    needed: float
