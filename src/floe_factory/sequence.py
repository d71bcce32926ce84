"""Monotonic sequence counters for sequence attributes."""

from __future__ import annotations

import threading


class Sequence:
    """A named, thread-safe, monotonically increasing counter.

    One counter exists per sequence declaration and lives as long as the
    factory definition that owns it. The first value is 1.

    Example:
        >>> seq = Sequence("login")
        >>> seq.next(), seq.next()
        (1, 2)
    """

    def __init__(self, name: str, start: int = 1) -> None:
        self.name = name
        self._next = start
        self._lock = threading.Lock()

    def next(self) -> int:
        """Return the next value and advance the counter."""
        with self._lock:
            value = self._next
            self._next += 1
        return value

    @property
    def current(self) -> int:
        """The value the next call to ``next`` will return."""
        return self._next

    def __repr__(self) -> str:
        return f"Sequence(name={self.name!r}, next={self._next})"
