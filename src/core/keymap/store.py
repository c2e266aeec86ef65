"""Keymap storage.

Keymaps are local (per-user) and stored one file per device under:
  ~/.config/openrgb-fade/keymaps/<vendor>-<name>.json

The file records the device signature next to the entries so a keymap taken
on a different keyboard (or on a firmware reporting a new LED count) is never
applied silently.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

from src.core.config.paths import keymaps_dir
from src.core.utils.exceptions import DeviceMismatch, KeymapNotFound

from .json_storage import read_json, write_json_atomic
from .model import DeviceSignature, Keymap

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class KeymapStore:
    def __init__(self, signature: DeviceSignature, *, root: Optional[Path] = None):
        self.signature = signature
        self._root = root

    @property
    def path(self) -> Path:
        root = self._root if self._root is not None else keymaps_dir()
        return root / f"{self.signature.file_stem}.json"

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Keymap:
        p = self.path
        if not p.exists():
            raise KeymapNotFound(f"No keymap stored at {p}")

        raw = read_json(p)
        if not isinstance(raw, dict):
            logger.warning("Keymap file %s is unreadable; recalibration required", p)
            raise KeymapNotFound(f"Unreadable keymap at {p}")

        stored = DeviceSignature.from_dict(raw.get("device"))
        if stored != self.signature:
            raise DeviceMismatch(
                f"Keymap at {p} was recorded for {stored} but the attached device is {self.signature}"
            )

        entries: Dict[str, int] = {}
        keys = raw.get("keys")
        if isinstance(keys, dict):
            for k, v in keys.items():
                if not isinstance(k, str) or isinstance(v, bool) or not isinstance(v, int):
                    continue
                if not 0 <= v < self.signature.led_count:
                    continue
                entries[k] = v
        return Keymap(entries)

    def save(self, keymap: Keymap) -> Path:
        payload = {
            "version": FORMAT_VERSION,
            "device": self.signature.as_dict(),
            "keys": dict(sorted(keymap.items())),
        }
        p = self.path
        write_json_atomic(p, payload)
        logger.info("Saved keymap with %d keys to %s", len(keymap), p)
        return p

    def delete(self) -> bool:
        try:
            self.path.unlink()
            return True
        except FileNotFoundError:
            return False
