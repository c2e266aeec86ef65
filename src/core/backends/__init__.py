from __future__ import annotations

from .base import Color, DeviceInfo, LightingClient
from .openrgb import OpenRgbClient, connect_with_retry

__all__ = [
    "Color",
    "DeviceInfo",
    "LightingClient",
    "OpenRgbClient",
    "connect_with_retry",
]
