"""
Request ID generator

A process-wide counter starting at 1. Every call returns a unique,
strictly increasing value.
"""

import itertools
import threading


class IdGenerator:
    """Monotonic ID source, safe to share between threads"""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        """Return the next identifier"""
        with self._lock:
            return next(self._counter)


# Shared by every request created in this process
_default_generator = IdGenerator()


def next_id() -> int:
    """Return the next process-wide request ID"""
    return _default_generator.next_id()
