"""Per-device key -> LED keymaps."""

from __future__ import annotations

from .model import DeviceSignature, Keymap, KeymapBuilder
from .store import KeymapStore

__all__ = [
    "DeviceSignature",
    "Keymap",
    "KeymapBuilder",
    "KeymapStore",
]
