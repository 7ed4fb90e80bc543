"""
Time utilities for performance measurement.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager


def now() -> float:
    """Get a monotonic timestamp in seconds (float)."""
    return time.perf_counter()

def elapsed_ms(start: float) -> int:
    """Milliseconds elapsed since `start` (a value returned by `now()`)."""
    return int((now() - start) * 1000)

@contextmanager
def timer(label: str, logger: logging.Logger | None = None) -> Iterator[None]:
    """
    Context manager for timing operations.

    Usage:
        with timer("catalog scan", logger):
            scanner.scan(root, config)
    """
    start = now()
    try:
        yield
    finally:
        elapsed = now() - start
        msg = f"{label} took {elapsed:.3f}s"
        if logger:
            logger.debug(msg)
        else:
            print(msg)
