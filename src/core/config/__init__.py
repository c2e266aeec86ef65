#!/usr/bin/env python3
"""openrgb-fade configuration.

`from src.core.config import Config` is the public entry point; path helpers
are re-exported for the keymap store and the instance lock.
"""

from __future__ import annotations

from .config import Config
from .defaults import DECAY_CURVES, DEFAULTS
from .file_storage import ensure_config_file, load_config_settings, save_config_settings_atomic
from .paths import config_dir, config_file_path, keymaps_dir, lock_file_path


__all__ = [
    "Config",
    "DECAY_CURVES",
    "DEFAULTS",
    "config_dir",
    "config_file_path",
    "ensure_config_file",
    "keymaps_dir",
    "load_config_settings",
    "lock_file_path",
    "save_config_settings_atomic",
]
