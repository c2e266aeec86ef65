from __future__ import annotations

import logging
import os
from contextlib import suppress
from typing import IO, Optional

from src.core.config.paths import lock_file_path


logger = logging.getLogger(__name__)

_instance_lock_fh: Optional[IO[str]] = None


def debug_requested() -> bool:
    return bool(os.environ.get("OPENRGB_FADE_DEBUG"))


def configure_logging(*, debug: bool = False) -> None:
    """Configure root logging for the CLI.

    Small and best-effort: if callers already configured logging handlers,
    we don't override them.
    """

    if logging.getLogger().handlers:
        return

    level = logging.DEBUG if (debug or debug_requested()) else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def acquire_single_instance_lock() -> bool:
    """Ensure only one openrgb-fade process drives the keyboard LEDs.

    Two instances would fight over the same LEDs (and a calibration run would
    be garbled by the other instance's fades).
    """

    global _instance_lock_fh

    try:
        import fcntl  # Linux/Unix
    except ImportError:
        return True

    lock_path = lock_file_path()
    with suppress(OSError):
        lock_path.parent.mkdir(parents=True, exist_ok=True)

    fh = None
    try:
        fh = open(lock_path, "a+", encoding="utf-8")
        fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        fh.seek(0)
        fh.truncate()
        fh.write(f"pid={os.getpid()}\n")
        fh.flush()
    except OSError as exc:
        logger.debug("Instance lock %s is held elsewhere: %s", lock_path, exc)
        if fh is not None:
            fh.close()
        return False

    _instance_lock_fh = fh
    return True


def release_single_instance_lock() -> None:
    global _instance_lock_fh

    fh = _instance_lock_fh
    _instance_lock_fh = None
    if fh is not None:
        with suppress(OSError):
            fh.close()
