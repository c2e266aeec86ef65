from __future__ import annotations

import threading

import pytest


class _StopAfter:
    """Engine stand-in that sets the stop event after N ticks."""

    def __init__(self, stop_event: threading.Event, ticks: int):
        self.stop_event = stop_event
        self.remaining = ticks
        self.handled = []
        self.ticks = []

    def handle_event(self, event) -> None:
        self.handled.append(event.key_id)

    def tick(self, now: float) -> int:
        self.ticks.append(now)
        self.remaining -= 1
        if self.remaining <= 0:
            self.stop_event.set()
        return 0


def test_loop_drains_events_before_ticking(fake_clock) -> None:
    from src.core.effects.loop import run_fade_loop
    from src.core.input.events import KeyEvent, KeyEventQueue

    stop = threading.Event()
    events = KeyEventQueue()
    events.put(KeyEvent("a", 0.0))
    events.put(KeyEvent("b", 0.0))
    engine = _StopAfter(stop, ticks=1)

    run_fade_loop(engine, events, stop, tick_interval_s=0.001, clock=fake_clock)  # type: ignore[arg-type]

    assert engine.handled == ["a", "b"]
    assert engine.ticks == [fake_clock.now]
    assert len(events) == 0


def test_loop_returns_immediately_when_already_stopped(fake_clock) -> None:
    from src.core.effects.loop import run_fade_loop
    from src.core.input.events import KeyEventQueue

    stop = threading.Event()
    stop.set()
    engine = _StopAfter(stop, ticks=1)

    run_fade_loop(engine, KeyEventQueue(), stop, tick_interval_s=0.016, clock=fake_clock)  # type: ignore[arg-type]

    assert engine.ticks == []


def test_loop_propagates_sdk_connection_error() -> None:
    from src.core.effects.loop import run_fade_loop
    from src.core.input.events import KeyEventQueue
    from src.core.utils.exceptions import SdkConnectionError

    class _Failing:
        def handle_event(self, event) -> None:
            pass

        def tick(self, now: float) -> int:
            raise SdkConnectionError("gone")

    with pytest.raises(SdkConnectionError):
        run_fade_loop(_Failing(), KeyEventQueue(), threading.Event(), tick_interval_s=0.001)  # type: ignore[arg-type]


def test_loop_ticks_repeatedly_until_stopped() -> None:
    from src.core.effects.loop import run_fade_loop
    from src.core.input.events import KeyEventQueue

    stop = threading.Event()
    engine = _StopAfter(stop, ticks=3)

    run_fade_loop(engine, KeyEventQueue(), stop, tick_interval_s=0.001)  # type: ignore[arg-type]

    assert len(engine.ticks) == 3
    assert engine.ticks == sorted(engine.ticks)
