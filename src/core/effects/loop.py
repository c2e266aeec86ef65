from __future__ import annotations

import logging
import time
from threading import Event
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from src.core.effects.fade import FadeEngine
    from src.core.input.events import KeyEventQueue

logger = logging.getLogger(__name__)


def run_fade_loop(
    engine: "FadeEngine",
    events: "KeyEventQueue",
    stop_event: Event,
    *,
    tick_interval_s: float,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Feed key events to *engine* and tick it at a fixed cadence until stopped.

    This is the only place fade state changes during a run: events and ticks
    share one thread. SdkConnectionError from the engine propagates.
    """

    dt = max(0.001, float(tick_interval_s))
    next_deadline = clock()
    logger.debug("Fade loop started (tick %.1fms)", dt * 1000.0)

    while not stop_event.is_set():
        for event in events.drain():
            engine.handle_event(event)

        engine.tick(clock())

        next_deadline += dt
        now = clock()
        if next_deadline < now:
            # Overran a tick (slow SDK round-trip); don't try to catch up.
            next_deadline = now
        stop_event.wait(next_deadline - now)

    logger.debug("Fade loop stopped")
