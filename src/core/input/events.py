from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

from src.core.utils.logging_utils import log_throttled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyEvent:
    key_id: str
    # time.monotonic() when the listener read the event.
    pressed_at: float
    pressed: bool = True


class KeyEventQueue:
    """Bounded hand-off from listener threads to the single consumer.

    `put` never blocks: when full, the oldest pending event is dropped. A lost
    re-press of an already-lit key only shortens that key's fade a little,
    whereas blocking would stall input capture.
    """

    def __init__(self, maxsize: int = 256):
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")
        self.maxsize = int(maxsize)
        self._items: Deque[KeyEvent] = deque()
        self._cond = threading.Condition()
        self.dropped = 0

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def put(self, event: KeyEvent) -> None:
        with self._cond:
            if len(self._items) >= self.maxsize:
                self._items.popleft()
                self.dropped += 1
                dropped = self.dropped
            else:
                dropped = 0
            self._items.append(event)
            self._cond.notify()

        if dropped:
            log_throttled(
                logger,
                "input.queue.dropped",
                interval_s=30,
                level=logging.WARNING,
                msg=f"Key event queue full; dropped {dropped} event(s) so far",
            )

    def get(self, timeout: Optional[float] = None) -> Optional[KeyEvent]:
        """Return the oldest event, waiting up to *timeout* seconds.

        Returns None on timeout. `timeout=None` waits indefinitely.
        """

        deadline = None if timeout is None else time.monotonic() + max(0.0, float(timeout))
        with self._cond:
            while not self._items:
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self._cond.wait(remaining)
            return self._items.popleft()

    def drain(self) -> List[KeyEvent]:
        """Return and remove every pending event, oldest first."""

        with self._cond:
            items = list(self._items)
            self._items.clear()
            return items

    def clear(self) -> int:
        with self._cond:
            n = len(self._items)
            self._items.clear()
            return n
