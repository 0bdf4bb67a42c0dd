"""Unit tests for QueueChannel — bounded SSE buffer and its failure modes."""

from __future__ import annotations

import threading
import time

import pytest

from fleetsim.comms.channel import ChannelClosedError, QueueChannel


pytestmark = pytest.mark.unit


class TestQueueChannel:

    def test_send_then_get(self):
        ch = QueueChannel()
        ch.send("data: 1\n\n")
        assert ch.get(timeout=0.1) == "data: 1\n\n"

    def test_preserves_order(self):
        ch = QueueChannel()
        for i in range(5):
            ch.send(str(i))
        assert [ch.get_nowait() for _ in range(5)] == ["0", "1", "2", "3", "4"]

    def test_get_times_out_with_none(self):
        ch = QueueChannel()
        started = time.monotonic()
        assert ch.get(timeout=0.05) is None
        assert time.monotonic() - started >= 0.04

    def test_get_nowait_empty(self):
        assert QueueChannel().get_nowait() is None

    def test_send_after_close_raises(self):
        ch = QueueChannel()
        ch.close()
        assert ch.closed
        with pytest.raises(ChannelClosedError):
            ch.send("x")

    def test_full_buffer_raises(self):
        ch = QueueChannel(maxsize=2)
        ch.send("a")
        ch.send("b")
        with pytest.raises(ChannelClosedError, match="full"):
            ch.send("c")
        assert ch.pending() == 2

    def test_close_is_idempotent(self):
        ch = QueueChannel()
        ch.close()
        ch.close()
        assert ch.closed

    def test_queued_messages_survive_close(self):
        ch = QueueChannel()
        ch.send("last")
        ch.close()
        assert ch.get_nowait() == "last"

    def test_cross_thread_delivery(self):
        ch = QueueChannel()
        received: list[str | None] = []
        reader = threading.Thread(target=lambda: received.append(ch.get(timeout=2.0)))
        reader.start()
        ch.send("hello")
        reader.join(timeout=3.0)
        assert received == ["hello"]
