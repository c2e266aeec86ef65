"""Config path helpers.

Kept separate from the Config object so the keymap store and the
single-instance lock can resolve paths without loading settings.
"""

from __future__ import annotations

import os
from pathlib import Path

APP_DIR_NAME = "openrgb-fade"


def config_dir() -> Path:
    """Return the directory used for openrgb-fade configuration.

    Priority:
    - OPENRGB_FADE_CONFIG_DIR
    - XDG_CONFIG_HOME/openrgb-fade
    - ~/.config/openrgb-fade
    """

    p = os.environ.get("OPENRGB_FADE_CONFIG_DIR")
    if p:
        return Path(p)

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_DIR_NAME

    return Path.home() / ".config" / APP_DIR_NAME


def config_file_path() -> Path:
    """Return the config.json path.

    Priority:
    - OPENRGB_FADE_CONFIG_PATH (explicit file override)
    - config_dir()/config.json
    """

    p = os.environ.get("OPENRGB_FADE_CONFIG_PATH")
    if p:
        return Path(p)
    return config_dir() / "config.json"


def keymaps_dir() -> Path:
    return config_dir() / "keymaps"


def lock_file_path() -> Path:
    return config_dir() / "openrgb-fade.lock"
