"""Live-update fan-out — channels, subscriber registry, broadcaster."""

from fleetsim.comms.broadcaster import Broadcaster, BroadcastState, sse_frame
from fleetsim.comms.channel import Channel, ChannelClosedError, QueueChannel
from fleetsim.comms.registry import Scope, Subscriber, SubscriberRegistry

__all__ = [
    "Broadcaster",
    "BroadcastState",
    "Channel",
    "ChannelClosedError",
    "QueueChannel",
    "Scope",
    "Subscriber",
    "SubscriberRegistry",
    "sse_frame",
]
