"""Order status polling.

One serialized loop per call: the next fetch is scheduled only after the
previous one finished, so ticks never overlap. The last seen status lives
in the call's own frame, which keeps concurrent polls for different orders
independent.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import AsyncIterator, Awaitable
from typing import Callable, Optional, Protocol, Union

from aori.contracts import OrderStatus
from aori.errors import PollTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.15
DEFAULT_POLL_TIMEOUT = 60.0

StatusChangeCallback = Callable[[str, OrderStatus], Union[None, Awaitable[None]]]
CompleteCallback = Callable[[OrderStatus], Union[None, Awaitable[None]]]
ErrorCallback = Callable[[Exception], Union[None, Awaitable[None]]]


class StatusSource(Protocol):
    async def get_order_status(self, order_hash: str) -> OrderStatus: ...


async def invoke_callback(callback: Optional[Callable], *args) -> None:
    """Call a sync or async callback."""
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


async def watch_order_status(
    source: StatusSource,
    order_hash: str,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
) -> AsyncIterator[OrderStatus]:
    """Yield each distinct status of an order, ending after a terminal one.

    The deadline also bounds each fetch and each sleep, so a slow source
    cannot hold the loop past ``timeout``.

    Raises:
        PollTimeoutError: if no terminal status was seen within ``timeout``
    """
    last_status: Optional[str] = None
    deadline = time.monotonic() + timeout

    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise PollTimeoutError(order_hash, timeout, last_status)

        try:
            status = await asyncio.wait_for(source.get_order_status(order_hash), remaining)
        except asyncio.TimeoutError:
            raise PollTimeoutError(order_hash, timeout, last_status) from None

        if status.status != last_status:
            logger.debug(f"Order {order_hash}: {last_status} -> {status.status}")
            last_status = status.status
            yield status

        if status.is_terminal:
            return

        await asyncio.sleep(min(interval, max(deadline - time.monotonic(), 0)))


async def poll_order_status(
    source: StatusSource,
    order_hash: str,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    on_status_change: Optional[StatusChangeCallback] = None,
    on_complete: Optional[CompleteCallback] = None,
    on_error: Optional[ErrorCallback] = None,
) -> OrderStatus:
    """Poll until the order reaches a terminal status.

    Args:
        source: Anything with ``get_order_status`` (usually ``AoriApi``)
        order_hash: Order to track
        interval: Seconds between fetches
        timeout: Seconds before giving up
        on_status_change: Called with (status, record) each time the status changes
        on_complete: Called once with the terminal record
        on_error: Called with the exception before it is raised

    Returns:
        The terminal OrderStatus

    Raises:
        PollTimeoutError: on timeout (the caller may poll again)
        AoriError: on fetch failure
    """
    final: Optional[OrderStatus] = None
    try:
        async for status in watch_order_status(source, order_hash, interval, timeout):
            await invoke_callback(on_status_change, status.status, status)
            final = status
    except asyncio.CancelledError:
        logger.debug(f"Polling for {order_hash} cancelled")
        raise
    except Exception as e:
        logger.warning(f"Polling for {order_hash} failed: {e}")
        await invoke_callback(on_error, e)
        raise

    logger.info(f"Order {order_hash} reached {final.status}")
    await invoke_callback(on_complete, final)
    return final
