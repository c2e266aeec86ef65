"""Interactive keymap calibration.

OpenRGB lists a keyboard's LEDs without saying which key each one sits
under. The wizard lights the LEDs one at a time and records the next key the
user presses for each, producing a keymap for the device.

States, for N LEDs:

    Lighting(0) -> Lighting(1) -> ... -> Lighting(N-1) -> Done (save)

Each Lighting(i) ends on a key press (LED i mapped to that key) or when the
wait window runs out (LED i left unmapped). Ctrl-C or the stop event cancel
the run without touching the stored keymap.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from threading import Event
from typing import TYPE_CHECKING, Callable, List, Optional, Protocol

from src.core.effects.colors import OFF
from src.core.keymap.model import Keymap, KeymapBuilder
from src.core.utils.exceptions import CalibrationCancelled

if TYPE_CHECKING:
    from src.core.backends.base import LightingClient
    from src.core.config import Config
    from src.core.input.events import KeyEvent
    from src.core.keymap.store import KeymapStore

logger = logging.getLogger(__name__)

# Upper bound on a single blocking wait so the stop event is noticed.
_POLL_S = 0.2


class EventSource(Protocol):
    def get(self, timeout: Optional[float] = None) -> "Optional[KeyEvent]": ...

    def clear(self) -> int: ...


@dataclass
class CalibrationResult:
    keymap: Keymap
    led_count: int
    skipped: List[int] = field(default_factory=list)
    remapped: List[str] = field(default_factory=list)

    @property
    def unmapped(self) -> List[int]:
        return self.keymap.unmapped_leds(self.led_count)


class CalibrationWizard:
    def __init__(
        self,
        client: "LightingClient",
        events: EventSource,
        store: "KeymapStore",
        config: "Config",
        *,
        stop_event: Optional[Event] = None,
        on_prompt: Optional[Callable[[int, int], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.events = events
        self.store = store
        self.prompt_color = tuple(config.prompt_color)
        self.timeout_s = float(config.calibration_timeout_s)
        self.stop_event = stop_event or Event()
        self.on_prompt = on_prompt
        self.clock = clock

    def run(self) -> CalibrationResult:
        """Calibrate every LED, save the keymap and return the result."""

        led_count = int(self.client.get_device_info().led_count)
        builder = KeymapBuilder()
        result = CalibrationResult(keymap=Keymap(), led_count=led_count)

        logger.info("Calibrating %d LEDs. Press the key under each LED as it lights up.", led_count)
        try:
            self.client.turn_off()
            # Whatever was typed before calibration started (e.g. the Enter that
            # launched us) must not be taken as the answer for LED 0.
            self.events.clear()

            for led in range(led_count):
                self._step(led, led_count, builder, result)

            self.client.turn_off()
        except KeyboardInterrupt as exc:
            self._turn_off_best_effort()
            raise CalibrationCancelled("Calibration interrupted; keymap not saved") from exc
        except CalibrationCancelled:
            self._turn_off_best_effort()
            raise

        result.keymap = builder.build()
        self.store.save(result.keymap)
        logger.info(
            "Calibration finished: %d keys mapped, %d LEDs unmapped",
            len(result.keymap),
            len(result.unmapped),
        )
        return result

    def _step(self, led: int, led_count: int, builder: KeymapBuilder, result: CalibrationResult) -> None:
        if led > 0:
            self.client.set_color(led - 1, OFF)
        self.client.set_color(led, self.prompt_color)  # type: ignore[arg-type]
        if self.on_prompt is not None:
            self.on_prompt(led, led_count)

        key_id = self._wait_for_press()
        if key_id is None:
            logger.warning("unmapped LED %d (no key pressed within %.1fs)", led, self.timeout_s)
            result.skipped.append(led)
            return

        previous = builder.assign(key_id, led)
        if previous is not None and previous != led:
            logger.warning("Key %r was already mapped to LED %d; remapped to LED %d", key_id, previous, led)
            result.remapped.append(key_id)
        else:
            logger.debug("LED %d -> %s", led, key_id)

    def _wait_for_press(self) -> Optional[str]:
        deadline = self.clock() + self.timeout_s
        while True:
            if self.stop_event.is_set():
                raise CalibrationCancelled("Calibration cancelled; keymap not saved")

            remaining = deadline - self.clock()
            if remaining <= 0:
                return None

            event = self.events.get(timeout=min(remaining, _POLL_S))
            if event is None or not event.pressed:
                continue
            return event.key_id

    def _turn_off_best_effort(self) -> None:
        try:
            self.client.turn_off()
        except Exception as exc:
            logger.debug("Failed to turn LEDs off after cancelled calibration: %s", exc)
