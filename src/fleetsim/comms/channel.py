"""Output channels — the write side of one streaming connection.

The broadcaster only needs ``send(text)``.  QueueChannel is the SSE
implementation: the broadcaster thread puts framed messages on a bounded
queue and the HTTP response generator drains it.  A consumer that stops
draining fills the queue, and the next send fails just like a broken
socket would, so a stalled client can never stall a broadcast cycle.
"""

from __future__ import annotations

import queue
import threading
from typing import Protocol


class ChannelClosedError(Exception):
    """Raised when writing to a channel that is closed or cannot keep up."""


class Channel(Protocol):
    def send(self, text: str) -> None: ...


class QueueChannel:
    """Bounded, thread-safe message buffer feeding one SSE response."""

    def __init__(self, maxsize: int = 32) -> None:
        self._queue: queue.Queue[str] = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, text: str) -> None:
        """Queue a message without blocking.

        Raises:
            ChannelClosedError: if the channel is closed or its buffer is full.
        """
        if self._closed.is_set():
            raise ChannelClosedError("channel closed")
        try:
            self._queue.put_nowait(text)
        except queue.Full:
            raise ChannelClosedError(
                f"channel buffer full ({self._queue.maxsize} pending)"
            ) from None

    def get(self, timeout: float | None = None) -> str | None:
        """Next queued message, or None if nothing arrived within ``timeout``."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def get_nowait(self) -> str | None:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def close(self) -> None:
        self._closed.set()

    def pending(self) -> int:
        return self._queue.qsize()
