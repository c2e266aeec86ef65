from __future__ import annotations

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Any

from src.core.utils.exceptions import ConfigError


def load_config_settings(
    *,
    config_file: Path,
    defaults: dict[str, Any],
    retries: int = 3,
    retry_delay: float = 0.02,
    logger,
) -> dict[str, Any]:
    """Load config JSON with retries for transient partial writes.

    Returns a merged dict of `{**defaults, **loaded}` when successful.
    Returns a copy of `defaults` when the file does not exist.
    Raises ConfigError when the file stays unreadable or is not a JSON object.
    """

    if not config_file.exists():
        return dict(defaults)

    last_error: Exception | None = None
    for _ in range(max(1, retries)):
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            # An editor or a second instance may be mid-write; try again shortly.
            last_error = e
            time.sleep(retry_delay)
            continue
        except UnicodeDecodeError as e:
            last_error = e
            break
        except OSError as e:
            last_error = e
            break

        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_file}: top level must be a JSON object")

        unknown = sorted(set(loaded) - set(defaults))
        if unknown:
            logger.warning("Ignoring unknown config keys in %s: %s", config_file, ", ".join(unknown))
            loaded = {k: v for k, v in loaded.items() if k in defaults}

        return {**defaults, **loaded}

    raise ConfigError(f"Failed to load config {config_file}: {last_error}")


def save_config_settings_atomic(*, config_dir: Path, config_file: Path, settings: dict[str, Any], logger) -> None:
    """Save config JSON atomically (write temp file then replace)."""

    try:
        config_dir.mkdir(parents=True, exist_ok=True)

        tmp_fd, tmp_path = tempfile.mkstemp(prefix="config.", suffix=".tmp", dir=str(config_dir))
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                json.dump(settings, f, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, config_file)
        finally:
            try:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
            except OSError as exc:
                logger.debug("Failed to remove temp config file %s: %s", tmp_path, exc)

    except Exception as e:
        logger.warning("Failed to save config: %s", e)


def ensure_config_file(*, config_dir: Path, config_file: Path, defaults: dict[str, Any], logger) -> bool:
    """Write *defaults* to *config_file* when it does not exist yet.

    Returns True when a new file was written.
    """

    if config_file.exists():
        return False

    logger.info("No config file found. Writing defaults to %s", config_file)
    save_config_settings_atomic(
        config_dir=config_dir,
        config_file=config_file,
        settings=defaults,
        logger=logger,
    )
    return True
