"""
Storefront Orders Engine — Order Numbering
============================================
Human-readable order numbers: ORD-<epoch millis>-<seq>.

The sequence makes numbers unique within a process even when two
orders land in the same millisecond. Thread-safe.
"""

from __future__ import annotations

import threading
from typing import Optional

from core.time import Clock, SystemClock

ORDER_NUMBER_PREFIX = "ORD"


class OrderNumberGenerator:
    def __init__(
        self,
        *,
        clock: Optional[Clock] = None,
        prefix: str = ORDER_NUMBER_PREFIX,
    ):
        if not prefix:
            raise ValueError("prefix must be non-empty.")
        self._clock = clock or SystemClock()
        self._prefix = prefix
        self._lock = threading.Lock()
        self._sequence = 0

    def next_number(self) -> str:
        millis = int(self._clock.now_utc().timestamp() * 1000)
        with self._lock:
            self._sequence += 1
            sequence = self._sequence
        return f"{self._prefix}-{millis}-{sequence:04d}"
