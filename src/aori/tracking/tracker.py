"""Reconcile polled and streamed order status into one terminal result.

Polling is the source of truth. A terminal event seen on the stream can end
the wait early; by default it is first confirmed with a direct status fetch
so a stray or reordered push never decides the outcome on its own.
"""

import asyncio
import logging
from typing import Optional

from aori.contracts import OrderStatus, WSEvent
from aori.tracking.poller import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    CompleteCallback,
    StatusChangeCallback,
    StatusSource,
    invoke_callback,
    poll_order_status,
)
from aori.tracking.stream import OrderStream

logger = logging.getLogger(__name__)


def status_from_event(event: WSEvent) -> OrderStatus:
    order = event.order
    return OrderStatus(
        status=event.event_type,
        order_hash=order.order_hash,
        tx_hash=order.dst_tx or order.src_tx,
        timestamp=event.timestamp,
    )


class OrderTracker:
    """Wait for orders to reach a terminal status.

    Args:
        source: Status source (usually ``AoriApi``)
        stream: Optional running stream used to end waits early
        interval: Poll interval in seconds
        timeout: Poll timeout in seconds
        confirm_streamed_terminal: Confirm terminal stream events with a fetch
    """

    def __init__(
        self,
        source: StatusSource,
        stream: Optional[OrderStream] = None,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        confirm_streamed_terminal: bool = True,
    ):
        self.source = source
        self.stream = stream
        self.interval = interval
        self.timeout = timeout
        self.confirm_streamed_terminal = confirm_streamed_terminal

    async def wait_for_terminal(
        self,
        order_hash: str,
        on_status_change: Optional[StatusChangeCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
    ) -> OrderStatus:
        """Return the order's terminal status.

        Raises:
            PollTimeoutError: if polling times out before any terminal status
            AoriError: if a status fetch fails
        """
        last: dict[str, Optional[str]] = {"status": None}

        async def changed(status: str, record: OrderStatus) -> None:
            last["status"] = status
            await invoke_callback(on_status_change, status, record)

        poll_task = asyncio.create_task(
            poll_order_status(
                self.source,
                order_hash,
                interval=self.interval,
                timeout=self.timeout,
                on_status_change=changed,
            )
        )
        tasks = {poll_task}
        if self.stream is not None and self.stream.is_running:
            tasks.add(asyncio.create_task(self._watch_stream(order_hash)))

        try:
            result = await self._first_result(tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        if result.status != last["status"]:
            await invoke_callback(on_status_change, result.status, result)
        await invoke_callback(on_complete, result)
        return result

    @staticmethod
    async def _first_result(tasks: set[asyncio.Task]) -> OrderStatus:
        """First non-None task result. Exceptions propagate."""
        pending = set(tasks)
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                result = task.result()
                if result is not None:
                    return result
        raise RuntimeError("Status tracking ended without a result")

    async def _watch_stream(self, order_hash: str) -> Optional[OrderStatus]:
        """Terminal status seen on the stream, or None if the stream ends."""
        target = order_hash.lower()
        events = self.stream.events()
        try:
            async for event in events:
                if event.order_hash.lower() != target or not event.is_terminal:
                    continue

                if not self.confirm_streamed_terminal:
                    logger.info(f"Order {order_hash} reached {event.event_type} (stream)")
                    return status_from_event(event)

                status = await self.source.get_order_status(order_hash)
                if status.is_terminal:
                    logger.info(f"Order {order_hash} reached {status.status} (stream, confirmed)")
                    return status
                logger.debug(
                    f"Stream reported {event.event_type} for {order_hash} but API says {status.status}"
                )
        finally:
            await events.aclose()
        return None
