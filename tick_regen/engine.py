"""Engine - sampling loop, pacing, periodic callbacks and lifecycle hooks."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from tick_regen.clock import Clock
from tick_regen.types import System, TickContext

logger = logging.getLogger(__name__)


@dataclass
class Periodic:
    """Recurring callback. Fires every `interval` ticks."""

    name: str
    interval: int
    callback: System
    elapsed: int = 0


class Engine:
    def __init__(self, tps: int = 20) -> None:
        self._clock = Clock(tps)
        self._systems: list[System] = []
        self._periodics: list[Periodic] = []
        self._start_hooks: list[System] = []
        self._stop_hooks: list[System] = []
        self._stop_requested: bool = False

    @property
    def clock(self) -> Clock:
        return self._clock

    def add_system(self, system: System) -> None:
        """Run *system* on every tick, in registration order."""
        self._systems.append(system)

    def every(
        self, interval: float, callback: System, name: str | None = None
    ) -> Periodic:
        """Run *callback* every *interval* seconds (rounded to whole ticks)."""
        periodic = Periodic(
            name=name or getattr(callback, "__name__", "periodic"),
            interval=self._clock.ticks_for(interval),
            callback=callback,
        )
        self._periodics.append(periodic)
        logger.debug(
            "Registered periodic %r every %d ticks (%.3fs requested)",
            periodic.name,
            periodic.interval,
            interval,
        )
        return periodic

    def cancel(self, periodic: Periodic) -> None:
        try:
            self._periodics.remove(periodic)
        except ValueError:
            pass

    def on_start(self, hook: System) -> None:
        self._start_hooks.append(hook)

    def on_stop(self, hook: System) -> None:
        self._stop_hooks.append(hook)

    def _request_stop(self) -> None:
        self._stop_requested = True

    def _tick(self) -> None:
        self._clock.advance()
        ctx = self._clock.context(self._request_stop)
        for periodic in list(self._periodics):
            periodic.elapsed += 1
            if periodic.elapsed >= periodic.interval:
                periodic.elapsed = 0
                periodic.callback(ctx)
                if self._stop_requested:
                    return
        for system in self._systems:
            system(ctx)
            if self._stop_requested:
                break

    def _fire(self, hooks: list[System]) -> None:
        ctx = self._clock.context(self._request_stop)
        for hook in hooks:
            hook(ctx)

    def step(self) -> None:
        self._stop_requested = False
        self._tick()

    def run(self, n: int) -> None:
        self._stop_requested = False
        self._fire(self._start_hooks)

        for _ in range(n):
            self._tick()
            if self._stop_requested:
                break

        self._fire(self._stop_hooks)

    def run_for(self, seconds: float) -> None:
        """Run as many ticks as cover *seconds* of simulated time."""
        self.run(self._clock.ticks_for(seconds))

    def run_forever(self) -> None:
        self._stop_requested = False
        self._fire(self._start_hooks)

        dt = self._clock.dt
        while not self._stop_requested:
            start = time.monotonic()
            self._tick()
            if self._stop_requested:
                break
            elapsed = time.monotonic() - start
            sleep_time = dt - elapsed
            if sleep_time > 0:
                time.sleep(sleep_time)

        self._fire(self._stop_hooks)
