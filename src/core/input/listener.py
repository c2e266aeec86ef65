"""evdev keyboard listener.

Reads key events from /dev/input/event* on a background thread and hands
them to a KeyEventQueue. The thread uses `select` with a short timeout so
`stop()` is honored promptly even when no key is pressed.
"""

from __future__ import annotations

import logging
import os
import select
import threading
import time
from typing import Callable, Optional

from src.core.utils.exceptions import InputCaptureError, is_device_disconnected, is_permission_denied
from src.core.utils.logging_utils import log_throttled

from .events import KeyEvent, KeyEventQueue
from .keys import key_id_for_code

logger = logging.getLogger(__name__)

# evdev EV_KEY values.
KEY_UP = 0
KEY_DOWN = 1
KEY_HOLD = 2

_POLL_INTERVAL_S = 0.2


def _looks_like_keyboard(dev) -> bool:
    from evdev import ecodes  # type: ignore

    try:
        keys = dev.capabilities(verbose=False).get(ecodes.EV_KEY, [])
    except Exception:
        return False
    # Mice and power buttons also report EV_KEY; require a couple of letter keys.
    return ecodes.KEY_A in keys and ecodes.KEY_SPACE in keys


def open_keyboards(name_filter: Optional[str] = None) -> list:
    """Open every evdev device that looks like a keyboard.

    *name_filter* is a case-insensitive substring of the input device name.
    Raises InputCaptureError when nothing usable can be opened.
    """

    if str(os.environ.get("OPENRGB_FADE_DISABLE_EVDEV", "")).strip().lower() in {"1", "true", "yes"}:
        raise InputCaptureError("evdev input disabled via OPENRGB_FADE_DISABLE_EVDEV")

    try:
        import evdev  # type: ignore
    except ImportError as exc:
        raise InputCaptureError(f"python-evdev is not available: {exc}") from exc

    needle = (name_filter or "").strip().lower()
    out = []
    denied = 0
    for path in evdev.list_devices():
        try:
            dev = evdev.InputDevice(path)
        except OSError as exc:
            if is_permission_denied(exc):
                denied += 1
            else:
                logger.debug("Skipping %s: %s", path, exc)
            continue

        if not _looks_like_keyboard(dev) or (needle and needle not in str(dev.name).lower()):
            dev.close()
            continue

        logger.info("Listening on %s (%s)", dev.path, dev.name)
        out.append(dev)

    if out:
        return out
    if denied:
        raise InputCaptureError(
            "Permission denied opening /dev/input/event*. Add your user to the 'input' group "
            "(or install a udev rule) and log in again."
        )
    if needle:
        raise InputCaptureError(f"No keyboard input device matching {name_filter!r}")
    raise InputCaptureError("No keyboard input devices found")


class KeyboardListener:
    def __init__(
        self,
        devices: list,
        events: KeyEventQueue,
        *,
        clock: Callable[[], float] = time.monotonic,
        on_failure: Optional[Callable[[InputCaptureError], None]] = None,
    ):
        self.devices = list(devices)
        self.events = events
        self.clock = clock
        self.on_failure = on_failure
        self.error: Optional[InputCaptureError] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def alive(self) -> bool:
        t = self._thread
        return bool(t and t.is_alive())

    def start(self) -> None:
        if self.alive:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="openrgb-fade-input", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        self._stop_event.set()
        t = self._thread
        self._thread = None
        if t is not None:
            t.join(timeout=timeout)
            if t.is_alive():
                logger.warning("Input listener thread did not stop within timeout")
        for dev in self.devices:
            try:
                dev.close()
            except Exception:
                continue
        self.devices = []

    def _run(self) -> None:
        while not self._stop_event.is_set():
            if not self.devices:
                self._fail(InputCaptureError("All keyboard input devices disappeared"))
                return

            try:
                ready, _, _ = select.select(self.devices, [], [], _POLL_INTERVAL_S)
            except (OSError, ValueError) as exc:
                # A closed fd makes select fail; find out which device it was.
                self._prune_dead_devices(exc)
                continue

            for dev in ready:
                self._read_device(dev)

    def _read_device(self, dev) -> None:
        from evdev import ecodes  # type: ignore

        try:
            for event in dev.read():
                if event.type != ecodes.EV_KEY or event.value == KEY_HOLD:
                    continue
                key_id = key_id_for_code(event.code)
                if key_id is None:
                    continue
                self.events.put(KeyEvent(key_id=key_id, pressed_at=self.clock(), pressed=event.value == KEY_DOWN))
        except BlockingIOError:
            return
        except OSError as exc:
            if is_device_disconnected(exc):
                logger.warning("Keyboard input device %s disappeared", getattr(dev, "path", dev))
                self._drop(dev)
                return
            log_throttled(
                logger,
                "input.listener.read_failed",
                interval_s=30,
                level=logging.WARNING,
                msg=f"Failed to read key events from {getattr(dev, 'path', dev)}",
                exc=exc,
            )

    def _prune_dead_devices(self, exc: BaseException) -> None:
        alive = []
        for dev in self.devices:
            try:
                if dev.fileno() >= 0:
                    alive.append(dev)
                    continue
            except Exception:
                pass
            logger.warning("Dropping input device %s: %s", getattr(dev, "path", dev), exc)
        if len(alive) == len(self.devices):
            # Nothing identifiable; avoid spinning on a persistent select error.
            self._stop_event.wait(_POLL_INTERVAL_S)
        self.devices = alive

    def _drop(self, dev) -> None:
        try:
            dev.close()
        except Exception:
            pass
        self.devices = [d for d in self.devices if d is not dev]

    def _fail(self, error: InputCaptureError) -> None:
        logger.error("%s", error)
        self.error = error
        if self.on_failure is not None:
            self.on_failure(error)
