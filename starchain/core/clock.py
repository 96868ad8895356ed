# starchain/core/clock.py
import time
from typing import Callable

Clock = Callable[[], int]


def epoch_now() -> int:
    """Wall clock in whole seconds since the epoch (sub-second precision dropped)."""
    return int(time.time())
