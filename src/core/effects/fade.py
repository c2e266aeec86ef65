"""Reactive key fade.

Each pressed (and mapped) key lights its LED in the base color; every tick
recomputes the LED color from the time since the press alone, so jitter in
input delivery or tick timing never accumulates into the color.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Tuple

from src.core.utils.exceptions import SdkConnectionError, is_timeout
from src.core.utils.logging_utils import log_throttled

from .colors import Color, mix
from .curves import DecayCurve, get_curve

if TYPE_CHECKING:
    from src.core.backends.base import LightingClient
    from src.core.config import Config
    from src.core.input.events import KeyEvent
    from src.core.keymap.model import Keymap

logger = logging.getLogger(__name__)


@dataclass
class FadeState:
    led_index: int
    base_color: Color
    lit_at: float
    duration: float

    def progress(self, now: float) -> float:
        elapsed = max(0.0, float(now) - self.lit_at)
        return elapsed / self.duration

    def finished(self, now: float) -> bool:
        return self.progress(now) >= 1.0

    def color_at(self, now: float, *, idle_color: Color, curve: DecayCurve) -> Color:
        t = self.progress(now)
        if t >= 1.0:
            return idle_color
        return mix(idle_color, self.base_color, curve(t))


class FadeEngine:
    """Owns the active fades of one keyboard and pushes their colors."""

    def __init__(self, client: "LightingClient", keymap: "Keymap | Mapping[str, int]", config: "Config"):
        self.client = client
        self.keymap = keymap
        self.base_color: Color = tuple(config.base_color)  # type: ignore[assignment]
        self.idle_color: Color = tuple(config.idle_color)  # type: ignore[assignment]
        self.duration_s = float(config.fade_duration_s)
        self.curve = get_curve(config.decay_curve)
        self.max_push_failures = int(config.max_push_failures)

        self._states: Dict[int, FadeState] = {}
        self._lock = RLock()
        self.consecutive_failures = 0
        self.failed: Optional[SdkConnectionError] = None

    @property
    def active_leds(self) -> Tuple[int, ...]:
        with self._lock:
            return tuple(sorted(self._states))

    def state_for(self, led_index: int) -> Optional[FadeState]:
        with self._lock:
            return self._states.get(int(led_index))

    def on_key_press(self, key_id: str, pressed_at: float) -> Optional[int]:
        """Light the key's LED; returns the LED index or None for unmapped keys."""

        led = self.keymap.get(key_id)
        if led is None:
            return None

        with self._lock:
            # Upsert: a re-press restarts the fade from full base color.
            self._states[int(led)] = FadeState(
                led_index=int(led),
                base_color=self.base_color,
                lit_at=float(pressed_at),
                duration=self.duration_s,
            )
        return int(led)

    def on_key_release(self, key_id: str, released_at: float) -> None:
        # Fades run on time alone, like the firmware effect being emulated.
        return None

    def handle_event(self, event: "KeyEvent") -> None:
        if event.pressed:
            self.on_key_press(event.key_id, event.pressed_at)
        else:
            self.on_key_release(event.key_id, event.pressed_at)

    def tick(self, now: float) -> int:
        """Push the current color of every fading LED; returns the number pushed.

        A failed push ends the tick; the remaining LEDs are retried on the next
        one. Raises SdkConnectionError once `max_push_failures` consecutive
        ticks have failed, and on every tick after that.
        """

        with self._lock:
            if self.failed is not None:
                raise SdkConnectionError(str(self.failed))

            pushed = 0
            for led in sorted(self._states):
                state = self._states[led]
                done = state.finished(now)
                color = state.color_at(now, idle_color=self.idle_color, curve=self.curve)
                try:
                    self.client.set_color(led, color)
                except Exception as exc:
                    self._record_failure(led, exc)
                    return pushed

                pushed += 1
                self.consecutive_failures = 0
                if done:
                    del self._states[led]
            return pushed

    def _record_failure(self, led: int, exc: Exception) -> None:
        self.consecutive_failures += 1
        what = "timed out" if is_timeout(exc) else "failed"
        log_throttled(
            logger,
            "fade.push_failed",
            interval_s=5,
            level=logging.WARNING,
            msg=f"LED {led} update {what} ({self.consecutive_failures}/{self.max_push_failures})",
            exc=exc,
        )
        if self.consecutive_failures < self.max_push_failures:
            return

        self.failed = SdkConnectionError(
            f"Giving up after {self.consecutive_failures} consecutive failed LED updates: {exc}"
        )
        raise self.failed from exc

    def reset(self) -> None:
        """Forget every fade and clear the failure state."""

        with self._lock:
            self._states.clear()
            self.consecutive_failures = 0
            self.failed = None
