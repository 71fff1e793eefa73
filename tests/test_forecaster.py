"""Tests for RegenForecaster composition and collaborator-facing API."""
from __future__ import annotations

import pytest

from tick_regen.config import RegenConfig
from tick_regen.engine import Engine
from tick_regen.forecaster import RegenForecaster
from tick_regen.oracle import PhaseOracle
from tick_regen.signals import ACTION_SUCCEEDED, TICK_OBSERVED, WINDOW_ARMED, SignalBus
from tick_regen.sources import StaticSource
from tick_regen.types import Phase, SampleOutcome


class ManualClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


def _setup(
    bus: SignalBus | None = None,
) -> tuple[StaticSource, ManualClock, RegenForecaster]:
    source = StaticSource(
        pools={"mana": (500, 1000), "energy": (40, 100), "rage": (10, 100)},
        costs={
            "flash_heal": (380, "mana"),
            "sinister_strike": (60, "energy"),
            "heroic_strike": (15, "rage"),
            "free_spell": (0, "mana"),
            "cheap_spell": (100, "mana"),
        },
    )
    clock = ManualClock()
    forecaster = RegenForecaster(source, bus=bus, clock=clock)
    return source, clock, forecaster


class TestComposition:
    def test_default_oracle_is_phase_oracle(self) -> None:
        _, _, forecaster = _setup()
        assert isinstance(forecaster.oracle, PhaseOracle)
        assert forecaster.predictor.oracle is forecaster.oracle

    def test_window_uses_config_duration(self) -> None:
        source = StaticSource()
        forecaster = RegenForecaster(source, config=RegenConfig(window_duration=3.0))
        assert forecaster.window.duration == 3.0

    def test_instances_do_not_share_state(self) -> None:
        _, _, a = _setup()
        _, _, b = _setup()
        a.window.record_decrease(1.0)
        assert b.window.last_trigger_time is None


class TestTimeUntilAffordable:
    def test_unknown_ability(self) -> None:
        _, _, forecaster = _setup()
        assert forecaster.time_until_affordable("nonexistent") == 0.0

    def test_free_ability(self) -> None:
        _, _, forecaster = _setup()
        assert forecaster.request_for("free_spell") is None
        assert forecaster.time_until_affordable("free_spell") == 0.0

    def test_already_affordable(self) -> None:
        _, _, forecaster = _setup()
        assert forecaster.time_until_affordable("cheap_spell") == 0.0

    def test_missing_pool(self) -> None:
        source, _, forecaster = _setup()
        source.remove_pool("energy")
        assert forecaster.time_until_affordable("sinister_strike") == 0.0

    def test_rage_is_unpredictable(self) -> None:
        _, _, forecaster = _setup()
        assert forecaster.time_until_affordable("heroic_strike") == 0.0

    def test_request_carries_need(self) -> None:
        _, _, forecaster = _setup()
        request = forecaster.request_for("sinister_strike")
        assert request is not None
        assert request.resource == "energy"
        assert request.needed == 20
        assert request.maximum == 100

    def test_energy_without_tick_data_assumes_full_period(self) -> None:
        _, _, forecaster = _setup()
        assert forecaster.time_until_affordable("sinister_strike") == pytest.approx(2.15)

    def test_energy_after_observed_tick(self) -> None:
        source, clock, forecaster = _setup()
        forecaster.sample()
        clock.now = 1.0
        source.set_pool("energy", 60)
        forecaster.sample()
        source.set_cost("eviscerate", 80, "energy")
        clock.now = 1.5
        # 1.5s to the next tick, one tick needed.
        assert forecaster.time_until_affordable("eviscerate") == pytest.approx(1.65)

    def test_mana_cold_start_uses_heuristic(self) -> None:
        source, _, forecaster = _setup()
        source.set_pool("mana", 0)
        # Need 380 -> 380 / (2% of 1000) = 19 ticks; worst-case first tick.
        expected = 2.0 + 18 * 2.0 + 0.15
        assert forecaster.time_until_affordable("flash_heal") == pytest.approx(expected)


class TestSuppression:
    def test_not_suppressed_initially(self) -> None:
        _, _, forecaster = _setup()
        assert not forecaster.is_suppressed()
        assert forecaster.suppression_time_remaining() == 0.0

    def test_query_self_heals(self) -> None:
        source, clock, forecaster = _setup()
        forecaster.sample()
        source.add("mana", -120)
        clock.now = 0.05
        assert forecaster.is_suppressed()
        assert forecaster.suppression_time_remaining() == pytest.approx(5.0)

    def test_sampling_arms_window(self) -> None:
        source, clock, forecaster = _setup()
        forecaster.sample()
        source.add("mana", -120)
        clock.now = 0.1
        forecaster.sample()
        assert forecaster.window.last_trigger_time == 0.1
        clock.now = 5.1
        assert not forecaster.is_suppressed()

    def test_action_hint_arms_only_on_spend(self) -> None:
        source, clock, forecaster = _setup()
        forecaster.sample()
        clock.now = 0.02
        assert not forecaster.on_action_succeeded()
        source.add("mana", -50)
        clock.now = 0.04
        assert forecaster.on_action_succeeded()
        assert forecaster.window.last_trigger_time == 0.04

    def test_action_hint_without_pool(self) -> None:
        source, _, forecaster = _setup()
        source.remove_pool("mana")
        assert not forecaster.on_action_succeeded()


class TestSignals:
    def test_action_signal_arms_window(self) -> None:
        bus = SignalBus()
        source, clock, forecaster = _setup(bus)
        forecaster.sample()
        source.add("mana", -200)
        clock.now = 0.03
        bus.publish(ACTION_SUCCEEDED, ability="flash_heal")
        bus.flush()
        assert forecaster.window.last_trigger_time == 0.03

    def test_sampling_publishes_window_and_ticks(self) -> None:
        bus = SignalBus()
        source, clock, forecaster = _setup(bus)
        seen: list[tuple[str, dict]] = []
        bus.subscribe(WINDOW_ARMED, lambda name, data: seen.append((name, data)))
        bus.subscribe(TICK_OBSERVED, lambda name, data: seen.append((name, data)))

        forecaster.sample()
        source.add("mana", -100)
        clock.now = 0.1
        forecaster.sample()
        source.add("mana", 12)
        clock.now = 2.0
        outcomes = forecaster.sample()
        bus.flush()

        assert outcomes["mana"] is SampleOutcome.TICK_UNRECORDED
        names = [name for name, _ in seen]
        assert names == [WINDOW_ARMED, TICK_OBSERVED]
        assert seen[1][1]["amount"] == 12
        assert seen[1][1]["resource"] == "mana"


class TestLearning:
    def test_learns_suppressed_and_full_rates(self) -> None:
        source, clock, forecaster = _setup()
        script = [
            (0.0, 0),
            (0.1, -100),  # spend, arms window
            (0.2, 0),
            (2.0, 12),  # in-window tick
            (4.0, 12),
            (6.0, 50),  # window over
            (8.0, 50),
        ]
        for t, delta in script:
            clock.now = t
            source.add("mana", delta)
            forecaster.sample()
        assert forecaster.estimator.rate("mana", Phase.SUPPRESSED) == 12
        assert forecaster.estimator.rate("mana", Phase.UNSUPPRESSED) == 50

    def test_tick_progress(self) -> None:
        source, clock, forecaster = _setup()
        forecaster.sample()
        clock.now = 1.0
        source.set_pool("energy", 60)
        forecaster.sample()
        clock.now = 2.0
        assert forecaster.tick_progress("energy") == pytest.approx(0.5)


class TestAttach:
    def test_engine_drives_sampling(self) -> None:
        source = StaticSource(pools={"energy": (40, 100)})
        engine = Engine(tps=20)
        forecaster = RegenForecaster(source, clock=engine.clock.now)
        periodic = forecaster.attach(engine)
        assert periodic.interval == 2

        engine.run(10)
        source.set_pool("energy", 60)
        engine.run(10)
        # Samples land every 0.1s; the first one after the change is at 0.6.
        assert forecaster.estimator.last_tick_time("energy") == pytest.approx(0.6)

    def test_attach_with_bus_flushes_each_tick(self) -> None:
        bus = SignalBus()
        source = StaticSource(pools={"mana": (500, 1000)})
        engine = Engine(tps=20)
        forecaster = RegenForecaster(source, bus=bus, clock=engine.clock.now)
        forecaster.attach(engine)
        armed: list[float] = []
        bus.subscribe(WINDOW_ARMED, lambda name, data: armed.append(data["time"]))

        engine.run(2)
        source.add("mana", -100)
        engine.run(2)
        assert armed == [pytest.approx(0.2)]


class TestSnapshot:
    def test_round_trip(self) -> None:
        source, clock, forecaster = _setup()
        for t, delta in [(0.0, 0), (0.1, 0), (2.0, 40)]:
            clock.now = t
            source.add("mana", delta)
            forecaster.sample()
        forecaster.window.record_decrease(3.0)

        _, _, other = _setup()
        other.restore(forecaster.snapshot())
        assert other.estimator.rate("mana", Phase.UNSUPPRESSED) == 40
        assert other.window.last_trigger_time == 3.0
        assert isinstance(other.oracle, PhaseOracle)
        assert other.oracle.last_tick("mana") == 2.0
