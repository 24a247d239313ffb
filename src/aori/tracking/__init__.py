"""Order status tracking: polling, streaming and reconciliation."""

from aori.tracking.poller import poll_order_status, watch_order_status
from aori.tracking.stream import OrderStream, StreamCallbacks
from aori.tracking.tracker import OrderTracker

__all__ = [
    "poll_order_status",
    "watch_order_status",
    "OrderStream",
    "StreamCallbacks",
    "OrderTracker",
]
