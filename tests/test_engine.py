"""Tests for engine lifecycle, periodic callbacks and pacing."""

from unittest.mock import patch

import pytest
from tick_regen.engine import Engine, Periodic


# --- Initialization ---

def test_engine_init_defaults():
    engine = Engine()
    assert engine.clock.tps == 20
    assert engine.clock.tick_number == 0


def test_engine_init_custom_tps():
    engine = Engine(tps=60)
    assert engine.clock.tps == 60


# --- Systems ---

def test_systems_run_in_order():
    engine = Engine()
    order = []
    engine.add_system(lambda ctx: order.append("first"))
    engine.add_system(lambda ctx: order.append("second"))
    engine.step()
    assert order == ["first", "second"]


def test_run_n_ticks():
    engine = Engine()
    tick_numbers = []
    engine.add_system(lambda ctx: tick_numbers.append(ctx.tick_number))
    engine.run(5)
    assert tick_numbers == [1, 2, 3, 4, 5]
    assert engine.clock.tick_number == 5


def test_run_for_covers_seconds():
    engine = Engine(tps=10)
    engine.run_for(1.5)
    assert engine.clock.tick_number == 15
    assert abs(engine.clock.elapsed - 1.5) < 1e-9


def test_request_stop_halts_run():
    engine = Engine()
    seen = []

    def stopper(ctx):
        seen.append(ctx.tick_number)
        if ctx.tick_number == 3:
            ctx.request_stop()

    engine.add_system(stopper)
    engine.run(10)
    assert seen == [1, 2, 3]


# --- Periodic callbacks ---

class TestEvery:
    def test_every_fires_at_interval(self):
        engine = Engine(tps=20)
        fired = []
        engine.every(0.1, lambda ctx: fired.append(ctx.tick_number))
        engine.run(10)
        assert fired == [2, 4, 6, 8, 10]

    def test_every_returns_periodic(self):
        engine = Engine(tps=10)

        def sampler(ctx):
            pass

        periodic = engine.every(0.5, sampler)
        assert isinstance(periodic, Periodic)
        assert periodic.interval == 5
        assert periodic.name == "sampler"

    def test_every_named(self):
        engine = Engine(tps=10)
        periodic = engine.every(1.0, lambda ctx: None, name="poll")
        assert periodic.name == "poll"

    def test_periodic_runs_before_systems(self):
        engine = Engine(tps=10)
        order = []
        engine.add_system(lambda ctx: order.append("system"))
        engine.every(0.1, lambda ctx: order.append("periodic"))
        engine.step()
        assert order == ["periodic", "system"]

    def test_cancel_stops_firing(self):
        engine = Engine(tps=10)
        fired = []
        periodic = engine.every(0.1, lambda ctx: fired.append(ctx.tick_number))
        engine.run(3)
        engine.cancel(periodic)
        engine.run(3)
        assert fired == [1, 2, 3]

    def test_cancel_unknown_is_noop(self):
        engine = Engine(tps=10)
        engine.cancel(Periodic(name="x", interval=1, callback=lambda ctx: None))

    def test_every_rejects_non_positive_interval(self):
        engine = Engine()
        with pytest.raises(ValueError):
            engine.every(0, lambda ctx: None)

    def test_stop_inside_periodic_skips_systems(self):
        engine = Engine(tps=10)
        ran = []
        engine.every(0.1, lambda ctx: ctx.request_stop())
        engine.add_system(lambda ctx: ran.append(ctx.tick_number))
        engine.run(5)
        assert ran == []
        assert engine.clock.tick_number == 1


# --- Hooks ---

def test_hooks_fire_once_per_run():
    engine = Engine()
    calls = []
    engine.on_start(lambda ctx: calls.append(("start", ctx.tick_number)))
    engine.on_stop(lambda ctx: calls.append(("stop", ctx.tick_number)))
    engine.run(3)
    assert calls == [("start", 0), ("stop", 3)]


def test_step_does_not_call_hooks():
    engine = Engine()
    calls = []
    engine.on_start(lambda ctx: calls.append("start"))
    engine.on_stop(lambda ctx: calls.append("stop"))
    engine.step()
    assert calls == []


# --- run_forever ---

def test_run_forever_paces_and_stops():
    engine = Engine(tps=20)
    seen = []

    def stopper(ctx):
        seen.append(ctx.tick_number)
        if ctx.tick_number == 4:
            ctx.request_stop()

    engine.add_system(stopper)
    with patch("tick_regen.engine.time.sleep") as sleep:
        engine.run_forever()

    assert seen == [1, 2, 3, 4]
    # Sleeps between ticks, not after the stopping tick.
    assert sleep.call_count == 3
