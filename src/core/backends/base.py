from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple

Color = Tuple[int, int, int]


@dataclass(frozen=True)
class DeviceInfo:
    """What the SDK reports about the keyboard being driven.

    `device_id` is the SDK location string (e.g. ``HID: /dev/hidraw3``) when the
    server provides one, otherwise the controller index.
    """

    device_id: str
    name: str
    vendor: str
    location: str
    led_count: int


class LightingClient(Protocol):
    """Minimal protocol for the lighting SDK connection.

    The fade engine and the calibration wizard only need these primitives,
    which keeps them testable against an in-memory fake.
    """

    def get_device_info(self) -> DeviceInfo: ...

    def set_color(self, led_index: int, rgb: Color) -> None: ...

    def fill(self, rgb: Color) -> None: ...

    def turn_off(self) -> None: ...

    def disconnect(self) -> None: ...
