"""
Monotonic timing helpers
"""

import time
from typing import Optional


class Timer:
    """Measures elapsed seconds against the monotonic performance counter"""

    @staticmethod
    def start() -> float:
        return time.perf_counter()

    @staticmethod
    def elapsed_seconds(start: float) -> float:
        return time.perf_counter() - start


class TimingContext:
    """Context manager for timing operations

    ``duration`` is set on exit whether the block returned or raised.
    """

    def __init__(self):
        self.start: Optional[float] = None
        self.duration: Optional[float] = None

    def __enter__(self):
        self.start = Timer.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = Timer.elapsed_seconds(self.start)
        return False
