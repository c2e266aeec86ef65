"""One openrgb-fade run: connect, make sure a keymap exists, then fade.

The session owns every long-lived resource (SDK connection, evdev listener,
event queue) and releases them in `shutdown()`.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from src.core.backends import DeviceInfo, OpenRgbClient, connect_with_retry
from src.core.calibration import CalibrationResult, CalibrationWizard
from src.core.config import Config
from src.core.effects.fade import FadeEngine
from src.core.effects.loop import run_fade_loop
from src.core.input import KeyboardListener, KeyEventQueue, open_keyboards
from src.core.keymap import DeviceSignature, Keymap, KeymapStore
from src.core.utils.exceptions import (
    DeviceMismatch,
    InputCaptureError,
    KeymapNotFound,
    SdkConnectionError,
)

logger = logging.getLogger(__name__)


def default_client_factory(config: Config) -> OpenRgbClient:
    return OpenRgbClient(config.sdk_host, config.sdk_port, timeout_s=config.push_timeout_s)


@dataclass(frozen=True)
class DeviceListing:
    info: DeviceInfo
    keymap_path: str
    has_keymap: bool


class FadeSession:
    def __init__(
        self,
        config: Config,
        *,
        client_factory: Callable[[Config], OpenRgbClient] = default_client_factory,
        open_input: Callable[[Optional[str]], list] = open_keyboards,
        on_prompt: Optional[Callable[[int, int], None]] = None,
        sleep: Optional[Callable[[float], object]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.client_factory = client_factory
        self.open_input = open_input
        self.on_prompt = on_prompt
        self.clock = clock

        self.stop_event = threading.Event()
        # Backoff sleeps return as soon as stop() is called.
        self.sleep = sleep or self.stop_event.wait
        self.events = KeyEventQueue(config.input_queue_size)
        self.client: Optional[OpenRgbClient] = None
        self.device: Optional[DeviceInfo] = None
        self.listener: Optional[KeyboardListener] = None
        self._input_error: Optional[InputCaptureError] = None

    # ---- lifecycle

    def stop(self) -> None:
        """Ask a running fade loop or calibration to return (signal-safe)."""

        self.stop_event.set()

    def connect(self) -> Optional[DeviceInfo]:
        """Connect to the SDK server (with retries) and select the keyboard.

        Returns None when stop() was called before a connection was made.
        """

        if self.client is None:
            self.client = self.client_factory(self.config)
        try:
            connect_with_retry(
                self.client,
                attempts=self.config.connect_retries,
                backoff_s=self.config.connect_backoff_s,
                sleep=self.sleep,
                should_stop=self.stop_event.is_set,
            )
        except SdkConnectionError:
            if self.stop_event.is_set():
                logger.info("Stopped while waiting for the OpenRGB SDK server")
                return None
            raise
        self.device = self.client.select_device(self.config.device_name)
        return self.device

    def start_input(self) -> None:
        if self.listener is not None and self.listener.alive:
            return
        devices = self.open_input(self.config.input_device_name)
        self.listener = KeyboardListener(devices, self.events, clock=self.clock, on_failure=self._on_input_failure)
        self.listener.start()

    def _on_input_failure(self, exc: InputCaptureError) -> None:
        self._input_error = exc
        self.stop_event.set()

    def shutdown(self) -> None:
        if self.listener is not None:
            self.listener.stop()
            self.listener = None

        client = self.client
        self.client = None
        if client is None:
            return
        try:
            if client.connected:
                client.turn_off()
        except Exception as exc:
            logger.debug("Failed to turn LEDs off on shutdown: %s", exc)
        client.disconnect()

    # ---- keymap

    def keymap_store(self, info: Optional[DeviceInfo] = None) -> KeymapStore:
        info = info or self.device
        if info is None:
            raise SdkConnectionError("No keyboard selected")
        return KeymapStore(DeviceSignature.from_device_info(info))

    def ensure_keymap(self) -> Keymap:
        """Load the stored keymap for the selected keyboard, calibrating if needed."""

        store = self.keymap_store()
        try:
            keymap = store.load()
        except DeviceMismatch as exc:
            logger.warning("%s; recalibrating", exc)
        except KeymapNotFound:
            logger.info("No keymap for %s yet; starting calibration", self.device.name if self.device else "device")
        else:
            logger.info("Loaded keymap with %d keys from %s", len(keymap), store.path)
            return keymap

        return self.calibrate().keymap

    def calibrate(self) -> CalibrationResult:
        assert self.client is not None
        self.start_input()
        wizard = CalibrationWizard(
            self.client,
            self.events,
            self.keymap_store(),
            self.config,
            stop_event=self.stop_event,
            on_prompt=self.on_prompt,
            clock=self.clock,
        )
        try:
            return wizard.run()
        finally:
            self._raise_input_error()

    # ---- commands

    def run(self) -> None:
        """Fade until stopped; reconnects when the SDK connection drops."""

        if self.connect() is None:
            return
        keymap = self.ensure_keymap()
        self.start_input()
        self.events.clear()

        while not self.stop_event.is_set():
            assert self.client is not None
            engine = FadeEngine(self.client, keymap, self.config)
            try:
                self._show_idle()
                run_fade_loop(
                    engine,
                    self.events,
                    self.stop_event,
                    tick_interval_s=self.config.tick_interval_s,
                    clock=self.clock,
                )
            except SdkConnectionError as exc:
                if self.stop_event.is_set():
                    break
                logger.warning("%s; reconnecting", exc)
                keymap = self._reconnect(keymap)

        self._raise_input_error()

    def _reconnect(self, keymap: Keymap) -> Keymap:
        assert self.client is not None
        previous = self.device
        self.client.disconnect()
        if self.connect() is None:
            return keymap

        if previous is not None and self.device is not None:
            if DeviceSignature.from_device_info(previous) != DeviceSignature.from_device_info(self.device):
                logger.warning("Keyboard changed across reconnect; reloading keymap")
                keymap = self.ensure_keymap()

        # Presses made while disconnected would light LEDs long after the fact.
        self.events.clear()
        logger.info("Reconnected to OpenRGB; resuming")
        return keymap

    def _show_idle(self) -> None:
        """Set every LED to the idle color so unpressed keys start from a known state."""

        assert self.client is not None
        try:
            self.client.fill(self.config.idle_color)
        except SdkConnectionError:
            raise
        except Exception as exc:
            name = self.device.name if self.device else "keyboard"
            logger.warning("Could not set the idle color on %s: %s", name, exc)

    def list_devices(self) -> List[DeviceListing]:
        if self.client is None:
            self.client = self.client_factory(self.config)
        connect_with_retry(self.client, attempts=1, backoff_s=0.0, sleep=self.sleep)

        out: List[DeviceListing] = []
        for info in self.client.list_keyboards():
            store = self.keymap_store(info)
            out.append(DeviceListing(info=info, keymap_path=str(store.path), has_keymap=store.exists()))
        return out

    def _raise_input_error(self) -> None:
        err = self._input_error
        if err is not None:
            self._input_error = None
            raise err
