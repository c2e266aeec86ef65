#!/usr/bin/env python3
"""Unit tests for core/config/config.py.

Focuses on validation and first-run behavior; never touches real user config.
"""

from __future__ import annotations

import json

import pytest


@pytest.fixture
def cfg_env(tmp_path, monkeypatch):
    cfg_dir = tmp_path / "cfg"
    monkeypatch.setenv("OPENRGB_FADE_CONFIG_DIR", str(cfg_dir))
    monkeypatch.delenv("OPENRGB_FADE_CONFIG_PATH", raising=False)
    return cfg_dir


class TestConfigLoad:
    def test_missing_file_writes_defaults(self, cfg_env) -> None:
        from src.core.config import DEFAULTS, Config

        cfg = Config.load()

        written = json.loads((cfg_env / "config.json").read_text())
        assert written == json.loads(json.dumps(DEFAULTS))
        assert cfg.sdk_host == "127.0.0.1"
        assert cfg.sdk_port == 6742
        assert cfg.fade_duration_ms == 1000
        assert cfg.base_color == (255, 100, 255)
        assert cfg.idle_color == (0, 0, 0)
        assert cfg.decay_curve == "linear"
        assert cfg.device_name is None

    def test_malformed_file_raises_config_error(self, cfg_env) -> None:
        from src.core.config import Config
        from src.core.utils.exceptions import ConfigError

        cfg_env.mkdir(parents=True)
        (cfg_env / "config.json").write_text("{not json")

        with pytest.raises(ConfigError):
            Config.load()

    def test_partial_file_takes_defaults_for_missing_keys(self, cfg_env) -> None:
        from src.core.config import Config

        cfg_env.mkdir(parents=True)
        (cfg_env / "config.json").write_text(json.dumps({"fade_duration_ms": 300, "decay_curve": "Exponential"}))

        cfg = Config.load()

        assert cfg.fade_duration_ms == 300
        assert cfg.fade_duration_s == pytest.approx(0.3)
        assert cfg.decay_curve == "exponential"
        assert cfg.tick_interval_ms == 16

    def test_explicit_path_override(self, tmp_path, monkeypatch) -> None:
        from src.core.config import Config

        path = tmp_path / "elsewhere" / "fade.json"
        monkeypatch.setenv("OPENRGB_FADE_CONFIG_PATH", str(path))

        cfg = Config.load()

        assert cfg.path == path
        assert path.exists()


class TestConfigValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"sdk_port": 0},
            {"sdk_port": "6742"},
            {"fade_duration_ms": 0},
            {"fade_duration_ms": 1.5},
            {"tick_interval_ms": True},
            {"base_color": [255, 0]},
            {"idle_color": [0, 0, 256]},
            {"prompt_color": "white"},
            {"decay_curve": "quadratic"},
            {"sdk_host": ""},
            {"device_name": 3},
            {"max_push_failures": 0},
            {"fade_duration_ms": float("inf")},
        ],
    )
    def test_invalid_values_raise(self, overrides) -> None:
        from src.core.config import Config
        from src.core.utils.exceptions import ConfigError

        with pytest.raises(ConfigError):
            Config(overrides)

    def test_integral_float_is_accepted(self) -> None:
        from src.core.config import Config

        assert Config({"fade_duration_ms": 500.0}).fade_duration_ms == 500

    def test_replace_applies_cli_overrides(self) -> None:
        from src.core.config import Config

        cfg = Config()
        cfg2 = cfg.replace(device_name="  Vulcan  ")

        assert cfg.device_name is None
        assert cfg2.device_name == "Vulcan"
        assert cfg2.as_dict()["sdk_port"] == 6742
