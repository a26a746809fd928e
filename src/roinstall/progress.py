# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Byte accounting for one install run.
"""

import threading
import time


class ByteCounter:
    """Thread-safe, monotonically increasing count of bytes written to disk"""

    def __init__(self):
        self._lock = threading.Lock()
        self._total = 0

    def add(self, n: int) -> int:
        """
        Add n bytes and return the new total.

        Raises:
            ValueError: If n is negative
        """
        if n < 0:
            raise ValueError(f"byte count cannot be negative: {n}")
        with self._lock:
            self._total += n
            return self._total

    @property
    def total(self) -> int:
        with self._lock:
            return self._total


class Stopwatch:
    """Wall-clock timer for the throughput report"""

    def __init__(self):
        self.started = time.monotonic()

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started


def format_throughput(total_bytes: int, elapsed: float) -> str:
    """Render ``done, 12.34 MB/s (N bytes in 1.23s)``"""
    rate = total_bytes / 1024 / 1024 / elapsed if elapsed > 0 else 0.0
    return f"done, {rate:.2f} MB/s ({total_bytes} bytes in {elapsed:.2f}s)"
