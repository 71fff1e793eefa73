"""tick-regen - Resource regeneration and affordability prediction."""
from tick_regen.clock import Clock
from tick_regen.config import RegenConfig
from tick_regen.engine import Engine, Periodic
from tick_regen.estimator import RateEstimator, SampleState
from tick_regen.forecaster import RegenForecaster
from tick_regen.history import TickHistory
from tick_regen.oracle import PhaseOracle, TickOracle
from tick_regen.predictor import AffordabilityPredictor
from tick_regen.signals import (
    ACTION_SUCCEEDED,
    TICK_OBSERVED,
    WINDOW_ARMED,
    SignalBus,
    make_signal_system,
)
from tick_regen.sources import ResourceSource, StaticSource
from tick_regen.systems import make_sampling_system, sample_pools
from tick_regen.types import (
    Phase,
    PredictionRequest,
    ResourceModel,
    SampleOutcome,
    TickContext,
)
from tick_regen.window import SuppressionWindow

__all__ = [
    "ACTION_SUCCEEDED",
    "TICK_OBSERVED",
    "WINDOW_ARMED",
    "AffordabilityPredictor",
    "Clock",
    "Engine",
    "Periodic",
    "Phase",
    "PhaseOracle",
    "PredictionRequest",
    "RateEstimator",
    "RegenConfig",
    "RegenForecaster",
    "ResourceModel",
    "ResourceSource",
    "SampleOutcome",
    "SampleState",
    "SignalBus",
    "StaticSource",
    "SuppressionWindow",
    "TickContext",
    "TickHistory",
    "TickOracle",
    "make_sampling_system",
    "make_signal_system",
    "sample_pools",
]
