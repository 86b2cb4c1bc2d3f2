"""
reconciler/clock.py

Wall clock in epoch milliseconds. Ingestors take it as an injectable callable.
"""

import time
from typing import Callable

Clock = Callable[[], int]


def now_millis() -> int:
    """Current time in epoch milliseconds."""
    return time.time_ns() // 1_000_000
