"""Keymap value types.

A keymap associates each physical key (evdev-derived key id) with exactly one
LED index of one OpenRGB device. The finished map is immutable; calibration
builds it through `KeymapBuilder`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional

KeyId = str
LedIndex = int


def _slug(value: str) -> str:
    s = re.sub(r"\s+", "_", (value or "").strip().lower())
    return re.sub(r"[^a-z0-9_.-]", "", s)


@dataclass(frozen=True)
class DeviceSignature:
    """Identity a stored keymap is valid for."""

    vendor: str
    name: str
    led_count: int

    @classmethod
    def from_device_info(cls, info: Any) -> "DeviceSignature":
        return cls(vendor=str(info.vendor), name=str(info.name), led_count=int(info.led_count))

    @classmethod
    def from_dict(cls, data: Any) -> Optional["DeviceSignature"]:
        if not isinstance(data, dict):
            return None
        try:
            return cls(
                vendor=str(data.get("vendor", "")),
                name=str(data["name"]),
                led_count=int(data["led_count"]),
            )
        except (KeyError, TypeError, ValueError):
            return None

    def as_dict(self) -> Dict[str, Any]:
        return {"vendor": self.vendor, "name": self.name, "led_count": self.led_count}

    @property
    def file_stem(self) -> str:
        """File name stem for this device, e.g. ``roccat-vulcan_tkl``."""
        vendor = _slug(self.vendor) or "unknown"
        name = _slug(self.name) or "keyboard"
        return f"{vendor}-{name}"


class Keymap(Mapping[KeyId, LedIndex]):
    """Immutable key_id -> LED index mapping."""

    __slots__ = ("_entries", "_leds")

    def __init__(self, entries: Optional[Mapping[KeyId, LedIndex]] = None):
        data = {str(k): int(v) for k, v in (entries or {}).items()}
        self._entries = MappingProxyType(data)
        self._leds = frozenset(data.values())

    def __getitem__(self, key_id: KeyId) -> LedIndex:
        return self._entries[key_id]

    def __iter__(self) -> Iterator[KeyId]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Keymap({dict(self._entries)!r})"

    def led_for(self, key_id: KeyId) -> Optional[LedIndex]:
        return self._entries.get(key_id)

    def mapped_leds(self) -> frozenset:
        return self._leds

    def unmapped_leds(self, led_count: int) -> List[LedIndex]:
        return [i for i in range(int(led_count)) if i not in self._leds]


class KeymapBuilder:
    """Mutable keymap used while calibration is in progress."""

    def __init__(self) -> None:
        self._entries: Dict[KeyId, LedIndex] = {}

    def assign(self, key_id: KeyId, led_index: LedIndex) -> Optional[LedIndex]:
        """Map *key_id* to *led_index*, returning the LED it was mapped to before.

        The newest assignment wins; a key never maps to two LEDs.
        """
        previous = self._entries.get(key_id)
        self._entries[key_id] = int(led_index)
        return previous

    def __len__(self) -> int:
        return len(self._entries)

    def build(self) -> Keymap:
        return Keymap(self._entries)
