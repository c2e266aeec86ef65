from __future__ import annotations

import logging
import threading
import time
from typing import Dict, Tuple


# key -> (last emit time, messages suppressed since then)
_throttle_state: Dict[str, Tuple[float, int]] = {}
_lock = threading.Lock()


def log_throttled(
    logger,
    key: str,
    *,
    interval_s: float,
    level: int,
    msg: str,
    exc: BaseException | None = None,
) -> bool:
    """Log at most once per *interval_s* for a given *key*.

    The fade loop can hit the same failure sixty times a second; suppressed
    repeats are counted and the count is appended to the next emitted line.
    Returns True if the message was logged.
    """

    now = time.monotonic()
    with _lock:
        last, suppressed = _throttle_state.get(key, (float("-inf"), 0))
        if (now - last) < interval_s:
            _throttle_state[key] = (last, suppressed + 1)
            return False
        _throttle_state[key] = (now, 0)

    if suppressed:
        msg = f"{msg} ({suppressed} similar message(s) suppressed)"

    if exc is not None:
        logger.log(level, "%s: %s", msg, exc, exc_info=logger.isEnabledFor(logging.DEBUG))
        return True

    logger.log(level, "%s", msg)
    return True


def reset_throttling() -> None:
    """Forget all throttle windows (used by tests)."""

    with _lock:
        _throttle_state.clear()
