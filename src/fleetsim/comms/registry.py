"""Subscriber registry — the set of live streaming connections.

Each Subscriber pairs a channel with a Scope fixed at subscription time:
all plants (dashboard stream) or one plant id (plant page stream).

Iteration is copy-on-iterate: ``for_each`` snapshots membership under the
lock and runs visitors outside it.  Visitors may therefore remove the
subscriber they are visiting (or any other) without deadlocking or
disturbing the rest of the pass.  A subscriber added during a pass is not
visited until the next one.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterator

from .channel import Channel

_ids = itertools.count(1)


@dataclass(frozen=True)
class Scope:
    """What a subscriber wants: every plant (plant_id None) or just one."""
    plant_id: int | str | None = None

    @classmethod
    def all(cls) -> Scope:
        return cls()

    @classmethod
    def plant(cls, plant_id: int | str) -> Scope:
        """Scope to one plant.  Numeric strings are normalised to int."""
        if isinstance(plant_id, str):
            try:
                plant_id = int(plant_id)
            except ValueError:
                pass
        return cls(plant_id=plant_id)

    @property
    def is_all(self) -> bool:
        return self.plant_id is None

    def __str__(self) -> str:
        return "all" if self.is_all else f"plant:{self.plant_id}"


@dataclass(frozen=True, eq=False)
class Subscriber:
    """One open stream.  Identity-compared; the channel is never shared."""
    channel: Channel
    scope: Scope = field(default_factory=Scope.all)
    id: int = field(default_factory=lambda: next(_ids))

    def __repr__(self) -> str:
        return f"Subscriber(id={self.id}, scope={self.scope})"


class SubscriberRegistry:
    """Thread-safe set of subscribers."""

    def __init__(self) -> None:
        self._subscribers: dict[int, Subscriber] = {}
        self._lock = threading.Lock()

    def add(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers[subscriber.id] = subscriber

    def remove(self, subscriber: Subscriber) -> None:
        """Remove a subscriber.  Removing an absent one is a no-op."""
        with self._lock:
            self._subscribers.pop(subscriber.id, None)

    def members(self) -> list[Subscriber]:
        with self._lock:
            return list(self._subscribers.values())

    def for_each(
        self,
        visitor: Callable[[Subscriber], None],
        members: list[Subscriber] | None = None,
    ) -> None:
        """Call ``visitor`` once per subscriber registered when the pass began.

        ``members`` is a membership snapshot taken earlier with ``members()``;
        by default one is taken now.  Subscribers removed before their turn
        are skipped, so a removed subscriber is never handed out again.
        """
        if members is None:
            members = self.members()
        for subscriber in members:
            if subscriber in self:
                visitor(subscriber)

    def __contains__(self, subscriber: object) -> bool:
        if not isinstance(subscriber, Subscriber):
            return False
        with self._lock:
            return self._subscribers.get(subscriber.id) is subscriber

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def __iter__(self) -> Iterator[Subscriber]:
        return iter(self.members())
