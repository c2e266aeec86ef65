"""OpenRGB SDK client.

Thin wrapper over `openrgb-python` exposing only what the fade engine and the
calibration wizard need: device info, single-LED color writes and fill.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional

from src.core.utils.exceptions import DeviceNotFound, SdkConnectionError, is_device_disconnected
from src.core.utils.logging_utils import log_throttled
from src.core.utils.safe_attrs import first_str_attr, safe_int_attr

from ..base import Color, DeviceInfo

logger = logging.getLogger(__name__)

CLIENT_NAME = "openrgb-fade"

# Cap for the linear reconnect backoff.
MAX_BACKOFF_S = 10.0


def _import_openrgb():
    import openrgb  # type: ignore
    from openrgb.utils import DeviceType, RGBColor  # type: ignore

    return openrgb, DeviceType, RGBColor


def _apply_socket_timeout(client: Any, timeout_s: float) -> None:
    """Bound every SDK round-trip so a stalled server cannot freeze the fade loop."""

    sock = getattr(getattr(client, "comms", None), "sock", None)
    if sock is None:
        logger.debug("OpenRGB client exposes no socket; push timeout not applied")
        return
    try:
        sock.settimeout(float(timeout_s))
    except OSError as exc:
        logger.debug("Failed to set SDK socket timeout: %s", exc)


def _device_info(index: int, device: Any) -> DeviceInfo:
    location = first_str_attr(device, "metadata.location", "location")
    return DeviceInfo(
        device_id=location or str(safe_int_attr(device, "device_id", default=index)),
        name=first_str_attr(device, "name", default="keyboard"),
        vendor=first_str_attr(device, "metadata.vendor", "vendor"),
        location=location,
        led_count=len(getattr(device, "leds", None) or []),
    )


class OpenRgbClient:
    """Connection to one keyboard on an OpenRGB SDK server."""

    def __init__(self, host: str, port: int, *, timeout_s: float = 0.25, name: str = CLIENT_NAME):
        self.host = host
        self.port = int(port)
        self.timeout_s = float(timeout_s)
        self.name = name
        self._client: Any = None
        self._device: Any = None
        self._info: Optional[DeviceInfo] = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    def connect(self) -> None:
        openrgb, _, _ = _import_openrgb()
        try:
            self._client = openrgb.OpenRGBClient(address=self.host, port=self.port, name=self.name)
        except Exception as exc:
            self._client = None
            raise SdkConnectionError(
                f"Could not connect to OpenRGB SDK server at {self.host}:{self.port}: {exc}"
            ) from exc

        _apply_socket_timeout(self._client, self.timeout_s)
        logger.info("Connected to OpenRGB SDK server at %s:%s", self.host, self.port)

    def _require_client(self) -> Any:
        if self._client is None:
            raise SdkConnectionError("Not connected to the OpenRGB SDK server")
        return self._client

    def list_keyboards(self) -> List[DeviceInfo]:
        return [_device_info(i, d) for i, d in self._keyboards()]

    def _keyboards(self) -> list:
        client = self._require_client()
        _, DeviceType, _ = _import_openrgb()
        devices = list(getattr(client, "devices", None) or [])
        return [(i, d) for i, d in enumerate(devices) if getattr(d, "type", None) == DeviceType.KEYBOARD]

    def select_device(self, name_filter: Optional[str] = None) -> DeviceInfo:
        """Pick the keyboard to drive and switch it to direct mode.

        *name_filter* is a case-insensitive substring of the device name or
        location; None selects the first keyboard the server reports.
        """

        needle = (name_filter or "").strip().lower()
        keyboards = self._keyboards()
        if not needle:
            lit = [d for _, d in keyboards if getattr(d, "leds", None)]
            if len(lit) > 1:
                logger.warning(
                    "OpenRGB reports %d keyboards; driving %r only. "
                    "Set device_name and input_device_name to pick one.",
                    len(lit),
                    first_str_attr(lit[0], "name", default="keyboard"),
                )

        for index, device in keyboards:
            info = _device_info(index, device)
            if needle and needle not in info.name.lower() and needle not in info.location.lower():
                continue
            if info.led_count <= 0:
                logger.info("Skipping %s: no addressable LEDs", info.name)
                continue

            self._device = device
            self._info = info
            self._enter_direct_mode(device)
            logger.info("Using %s %s (%d LEDs, %s)", info.vendor, info.name, info.led_count, info.device_id)
            return info

        if needle:
            raise DeviceNotFound(f"OpenRGB reports no keyboard matching {name_filter!r}")
        raise DeviceNotFound("OpenRGB reports no keyboard with addressable LEDs")

    @staticmethod
    def _enter_direct_mode(device: Any) -> None:
        # Per-LED writes only show up in direct/custom mode on most controllers.
        try:
            set_custom_mode = getattr(device, "set_custom_mode", None)
            if callable(set_custom_mode):
                set_custom_mode()
            else:
                device.set_mode("direct")
        except Exception as exc:
            logger.warning("Could not switch %s to direct mode: %s", getattr(device, "name", "device"), exc)

    def get_device_info(self) -> DeviceInfo:
        if self._info is None:
            raise SdkConnectionError("No keyboard selected")
        return self._info

    def _rgb(self, rgb: Color) -> Any:
        _, _, RGBColor = _import_openrgb()
        return RGBColor(int(rgb[0]), int(rgb[1]), int(rgb[2]))

    def set_color(self, led_index: int, rgb: Color) -> None:
        self._require_client()
        if self._device is None:
            raise SdkConnectionError("No keyboard selected")
        try:
            self._device.leds[int(led_index)].set_color(self._rgb(rgb), fast=True)
        except IndexError:
            raise
        except Exception as exc:
            if is_device_disconnected(exc):
                raise SdkConnectionError(f"Lost connection to OpenRGB SDK server: {exc}") from exc
            raise

    def fill(self, rgb: Color) -> None:
        """Set every LED of the selected keyboard to *rgb*."""

        self._require_client()
        if self._device is None:
            return
        try:
            self._device.set_color(self._rgb(rgb), fast=True)
        except Exception as exc:
            if is_device_disconnected(exc):
                raise SdkConnectionError(f"Lost connection to OpenRGB SDK server: {exc}") from exc
            raise

    def turn_off(self) -> None:
        self.fill((0, 0, 0))

    def disconnect(self) -> None:
        client = self._client
        self._client = None
        self._device = None
        if client is None:
            return
        try:
            client.disconnect()
        except Exception as exc:
            log_throttled(
                logger,
                "openrgb.disconnect",
                interval_s=60,
                level=logging.DEBUG,
                msg="Error while disconnecting from the OpenRGB SDK server",
                exc=exc,
            )


def connect_with_retry(
    client: OpenRgbClient,
    *,
    attempts: int,
    backoff_s: float,
    sleep: Callable[[float], Any] = time.sleep,
    should_stop: Optional[Callable[[], bool]] = None,
) -> OpenRgbClient:
    """Connect, retrying with a linear backoff (capped at 10s).

    Raises the last SdkConnectionError once *attempts* are exhausted, or as
    soon as *should_stop* returns True after a failed attempt.
    """

    def _stopping() -> bool:
        return should_stop is not None and bool(should_stop())

    last_error: Optional[SdkConnectionError] = None
    for attempt in range(max(1, int(attempts))):
        try:
            client.connect()
            return client
        except SdkConnectionError as exc:
            last_error = exc
            if attempt + 1 >= attempts or _stopping():
                break
            delay = min(MAX_BACKOFF_S, float(backoff_s) * (attempt + 1))
            logger.warning("%s. Retrying in %.0fms.", exc, delay * 1000.0)
            sleep(delay)
            if _stopping():
                break

    assert last_error is not None
    raise last_error
