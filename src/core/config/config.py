#!/usr/bin/env python3
"""openrgb-fade Config implementation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from .defaults import DECAY_CURVES, DEFAULTS as _DEFAULTS
from .file_storage import ensure_config_file, load_config_settings
from .paths import config_file_path
from ._props import color_prop, enum_prop, int_prop, str_prop

logger = logging.getLogger(__name__)


class Config:
    """Read-only settings, loaded once at startup.

    Every value is validated on construction, so a bad config file fails fast
    with ConfigError instead of surfacing halfway through a fade.
    """

    DEFAULTS = _DEFAULTS

    sdk_host = str_prop("sdk_host")
    sdk_port = int_prop("sdk_port", min_v=1, max_v=65535)
    fade_duration_ms = int_prop("fade_duration_ms", min_v=1)
    tick_interval_ms = int_prop("tick_interval_ms", min_v=1, max_v=1000)
    base_color = color_prop("base_color")
    idle_color = color_prop("idle_color")
    prompt_color = color_prop("prompt_color")
    decay_curve = enum_prop("decay_curve", allowed=DECAY_CURVES)
    push_timeout_ms = int_prop("push_timeout_ms", min_v=1)
    max_push_failures = int_prop("max_push_failures", min_v=1)
    connect_retries = int_prop("connect_retries", min_v=1)
    connect_backoff_ms = int_prop("connect_backoff_ms", min_v=0)
    calibration_timeout_ms = int_prop("calibration_timeout_ms", min_v=1)
    input_queue_size = int_prop("input_queue_size", min_v=1)
    device_name = str_prop("device_name", optional=True)
    input_device_name = str_prop("input_device_name", optional=True)

    def __init__(self, settings: Optional[Mapping[str, Any]] = None, *, path: Optional[Path] = None):
        self.path = path
        self._settings: dict[str, Any] = {**self.DEFAULTS, **dict(settings or {})}
        self._validate()

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """Load config.json, writing defaults first when it does not exist."""

        config_file = Path(path) if path is not None else config_file_path()
        ensure_config_file(
            config_dir=config_file.parent,
            config_file=config_file,
            defaults=cls.DEFAULTS,
            logger=logger,
        )
        settings = load_config_settings(config_file=config_file, defaults=cls.DEFAULTS, logger=logger)
        return cls(settings, path=config_file)

    def _validate(self) -> None:
        for key in self.DEFAULTS:
            getattr(self, key)

    def replace(self, **overrides: Any) -> "Config":
        """Return a copy with *overrides* applied (used for CLI flags)."""

        return Config({**self._settings, **overrides}, path=self.path)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._settings)

    @property
    def fade_duration_s(self) -> float:
        return self.fade_duration_ms / 1000.0

    @property
    def tick_interval_s(self) -> float:
        return self.tick_interval_ms / 1000.0

    @property
    def push_timeout_s(self) -> float:
        return self.push_timeout_ms / 1000.0

    @property
    def connect_backoff_s(self) -> float:
        return self.connect_backoff_ms / 1000.0

    @property
    def calibration_timeout_s(self) -> float:
        return self.calibration_timeout_ms / 1000.0

    def __repr__(self) -> str:
        return f"Config({self._settings!r})"
