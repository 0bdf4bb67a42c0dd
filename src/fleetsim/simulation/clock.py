"""TickClock — the simulated time step counter.

One tick is one 30-minute step of simulated plant time (48 per day).  The
clock is owned by whoever creates it and handed to the broadcaster and the
simulation control routes, so tests can run with independent clocks.
"""

from __future__ import annotations

import threading


class TickClock:
    """Thread-safe monotonically increasing tick counter."""

    def __init__(self) -> None:
        self._tick = 0
        self._lock = threading.Lock()

    def advance(self) -> int:
        """Increment the tick by one and return the new value."""
        with self._lock:
            self._tick += 1
            return self._tick

    def current(self) -> int:
        with self._lock:
            return self._tick

    def reset(self) -> int:
        """Set the tick back to 0.  Races with advance() are last-writer-wins."""
        with self._lock:
            self._tick = 0
            return self._tick
