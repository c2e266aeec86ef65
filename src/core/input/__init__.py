"""Keyboard input capture (evdev)."""

from __future__ import annotations

from .events import KeyEvent, KeyEventQueue
from .keys import evdev_key_name_to_key_id, key_id_for_code, key_id_for_names
from .listener import KeyboardListener, open_keyboards

__all__ = [
    "KeyEvent",
    "KeyEventQueue",
    "KeyboardListener",
    "evdev_key_name_to_key_id",
    "key_id_for_code",
    "key_id_for_names",
    "open_keyboards",
]
