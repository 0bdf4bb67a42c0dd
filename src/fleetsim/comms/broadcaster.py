"""Broadcaster — periodic fan-out of simulated telemetry to live streams.

Cycle (every ``interval`` seconds, on the ``sim-broadcast`` daemon thread):

  1. Advance the tick clock once and snapshot who is subscribed.
  2. Compute one fleet snapshot for the tick.
  3. Visit every registered subscriber:
       - all-plants scope  -> the shared fleet payload
       - plant scope       -> that plant's snapshot, computed at most once
                              per plant per cycle and shared by everyone
                              watching it.  Unknown plants are skipped for
                              the cycle but stay subscribed.
     A subscriber whose channel raises on write is dropped; the cycle
     carries on with the others.

Subscribing is serialised against step 1: a new subscriber either gets its
initial envelope for the new tick and is left out of the pass, or is in the
pass and gets the update.  It never sees the same tick twice.

Only one cycle runs at a time.  The scheduler waits a full interval after
each cycle finishes, so it cannot overlap itself; a cycle triggered from
elsewhere while one is in flight is logged and skipped.  Cycles that take
longer than the interval are logged as overruns, since the update period
quietly stretches when that happens.

Wire format (one SSE message per envelope):

  data: {"type": "initial"|"update", "data": {"plants": [...], "kpis": {...}, "tick": n}}
  data: {"type": "initial"|"update", "data": {"entity": {...}|null, "tick": n}}
"""

from __future__ import annotations

import json
import threading
import time
from enum import Enum

from loguru import logger

from fleetsim.simulation.clock import TickClock
from fleetsim.simulation.snapshot import SnapshotProducer, UnknownPlantError

from .channel import Channel
from .registry import Scope, Subscriber, SubscriberRegistry


class BroadcastState(Enum):
    IDLE = "idle"
    BROADCASTING = "broadcasting"


def sse_frame(message: dict) -> str:
    """Frame one JSON message as a Server-Sent Event."""
    return f"data: {json.dumps(message)}\n\n"


class Broadcaster:
    """Drives the tick clock and pushes scoped snapshots to subscribers."""

    def __init__(
        self,
        clock: TickClock,
        producer: SnapshotProducer,
        registry: SubscriberRegistry | None = None,
        interval: float = 3.0,
    ) -> None:
        self.clock = clock
        self.producer = producer
        self.registry = registry if registry is not None else SubscriberRegistry()
        self.interval = interval
        self._state = BroadcastState.IDLE
        self._cycle_lock = threading.Lock()
        # Guards advance() plus the membership snapshot against subscribe()
        self._register_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.cycles = 0
        self.last_cycle_duration = 0.0

    @property
    def state(self) -> BroadcastState:
        return self._state

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -- Payloads -----------------------------------------------------------

    def _fleet_message(self, msg_type: str, tick: int) -> dict:
        return {"type": msg_type, "data": self.producer.fleet_snapshot(tick).to_dict()}

    def _plant_message(self, msg_type: str, tick: int, plant_id: int | str) -> dict:
        """Plant-scoped envelope.  Raises UnknownPlantError for unknown ids."""
        snapshot = self.producer.entity_snapshot(tick, plant_id)
        return {"type": msg_type, "data": {"entity": snapshot.to_dict(), "tick": tick}}

    # -- Subscriptions ------------------------------------------------------

    def subscribe(self, scope: Scope, channel: Channel) -> Subscriber:
        """Send the initial envelope for the current tick, then register.

        A plant scope whose id is unknown still subscribes; its initial
        envelope carries ``"entity": null``.
        """
        subscriber = Subscriber(channel=channel, scope=scope)
        with self._register_lock:
            tick = self.clock.current()
            if scope.is_all:
                message = self._fleet_message("initial", tick)
            else:
                try:
                    message = self._plant_message("initial", tick, scope.plant_id)
                except UnknownPlantError:
                    logger.debug(f"Initial snapshot for unknown plant {scope.plant_id!r}")
                    message = {"type": "initial", "data": {"entity": None, "tick": tick}}
            channel.send(sse_frame(message))
            self.registry.add(subscriber)
        logger.info(f"Client connected to {scope} stream. Total clients: {len(self.registry)}")
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Remove a subscriber and close its channel.  Idempotent."""
        self._drop(subscriber)
        logger.info(f"Client disconnected. Total clients: {len(self.registry)}")

    def _drop(self, subscriber: Subscriber) -> None:
        self.registry.remove(subscriber)
        close = getattr(subscriber.channel, "close", None)
        if close is not None:
            close()

    # -- Cycle --------------------------------------------------------------

    def run_cycle(self) -> int | None:
        """Run one broadcast cycle.  Returns the new tick, or None if skipped."""
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("Broadcast cycle triggered while another is in progress; skipped")
            return None
        started = time.monotonic()
        self._state = BroadcastState.BROADCASTING
        try:
            with self._register_lock:
                tick = self.clock.advance()
                members = self.registry.members()
            fleet_frame = sse_frame(self._fleet_message("update", tick))
            plant_frames: dict[int | str, str | None] = {}

            def deliver(subscriber: Subscriber) -> None:
                scope = subscriber.scope
                if scope.is_all:
                    frame = fleet_frame
                else:
                    if scope.plant_id not in plant_frames:
                        try:
                            message = self._plant_message("update", tick, scope.plant_id)
                            plant_frames[scope.plant_id] = sse_frame(message)
                        except UnknownPlantError:
                            logger.debug(f"No snapshot for unknown plant {scope.plant_id!r}")
                            plant_frames[scope.plant_id] = None
                    frame = plant_frames[scope.plant_id]
                    if frame is None:
                        return
                try:
                    subscriber.channel.send(frame)
                except Exception as e:
                    logger.warning(f"Failed to send to {subscriber}: {e}")
                    self._drop(subscriber)

            self.registry.for_each(deliver, members)
            self.cycles += 1
            return tick
        finally:
            self.last_cycle_duration = time.monotonic() - started
            self._state = BroadcastState.IDLE
            self._cycle_lock.release()
            if self.last_cycle_duration > self.interval:
                logger.warning(
                    f"Broadcast cycle took {self.last_cycle_duration:.3f}s, "
                    f"longer than the {self.interval:.3f}s interval"
                )

    # -- Lifecycle ----------------------------------------------------------

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._broadcast_loop, name="sim-broadcast", daemon=True
        )
        self._thread.start()
        logger.info(f"Auto-simulation running every {self.interval:g} seconds")

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        for subscriber in self.registry.members():
            self._drop(subscriber)

    def _broadcast_loop(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.run_cycle()
            except Exception:
                logger.exception("Broadcast cycle failed")

    # -- Simulation control -------------------------------------------------

    def advance_tick(self) -> int:
        """Advance the clock without broadcasting."""
        return self.clock.advance()

    def reset_tick(self) -> int:
        return self.clock.reset()

    def current_tick(self) -> int:
        return self.clock.current()

    def status(self) -> dict:
        return {
            "tick": self.clock.current(),
            "clients": len(self.registry),
            "state": self._state.value,
            "interval": self.interval,
            "running": self.running,
        }
