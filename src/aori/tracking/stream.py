"""WebSocket order event stream.

Each ``OrderStream`` owns at most one socket and one reader task. The reader
task survives reconnects, and every socket is read by that single task, so
handlers can never be attached twice to the same stream of messages.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import urlencode

from pydantic import ValidationError
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.protocol import State

from aori.constants import AORI_WS_API
from aori.contracts import SubscriptionParams, WSEvent
from aori.errors import StreamError
from aori.tracking.poller import invoke_callback

logger = logging.getLogger(__name__)

# Sentinel pushed to subscribers when the stream shuts down for good
_CLOSED = object()


@dataclass
class StreamCallbacks:
    """Optional stream callbacks. Each may be a plain function or a coroutine function."""
    on_message: Optional[Callable] = None      # (WSEvent)
    on_connect: Optional[Callable] = None      # ()
    on_disconnect: Optional[Callable] = None   # ()
    on_error: Optional[Callable] = None        # (Exception)


class OrderStream:
    """Order event stream with fixed-delay reconnection.

    Args:
        ws_url: WebSocket base URL (http(s) schemes are rewritten to ws(s))
        stream_path: Path of the stream endpoint
        api_key: Sent as the ``key`` query parameter
        reconnect_delay: Seconds to wait before each reconnect attempt
        should_reconnect: Predicate checked before reconnecting; the stream
            stops for good once it returns False
        open_timeout: Seconds allowed for the opening handshake
    """

    def __init__(
        self,
        ws_url: str = AORI_WS_API,
        stream_path: str = "/stream",
        api_key: Optional[str] = None,
        reconnect_delay: float = 1.0,
        should_reconnect: Optional[Callable[[], bool]] = None,
        open_timeout: float = 10.0,
    ):
        if ws_url.startswith("http"):
            ws_url = "ws" + ws_url[len("http"):]
        self.ws_url = ws_url.rstrip("/")
        self.stream_path = stream_path
        self.api_key = api_key
        self.reconnect_delay = reconnect_delay
        self.should_reconnect = should_reconnect or (lambda: True)
        self.open_timeout = open_timeout

        self._ws: Optional[ClientConnection] = None
        self._runner: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()
        self._callbacks = StreamCallbacks()
        self._subscribers: set[asyncio.Queue] = set()

    def build_url(self, params: Optional[SubscriptionParams] = None) -> str:
        """Stream URL with API key and filters as query parameters."""
        query = {}
        if self.api_key:
            query["key"] = self.api_key
        if params is not None:
            query.update(params.to_query())
        url = f"{self.ws_url}{self.stream_path}"
        return f"{url}?{urlencode(query)}" if query else url

    def is_connected(self) -> bool:
        return self._ws is not None and self._ws.state is State.OPEN

    @property
    def is_running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    # ======================
    # Lifecycle
    # ======================

    async def connect(
        self,
        params: Optional[SubscriptionParams] = None,
        callbacks: Optional[StreamCallbacks] = None,
    ) -> None:
        """Open the stream and start the reader task.

        An existing connection is torn down first.

        Raises:
            StreamError: if the initial connection cannot be established
        """
        if self._runner is not None:
            logger.info("Stream already running; reconnecting with new parameters")
            await self.disconnect()

        self._callbacks = callbacks or StreamCallbacks()
        self._stop = asyncio.Event()
        url = self.build_url(params)

        try:
            ws = await self._open(url)
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            await invoke_callback(self._callbacks.on_error, e)
            raise StreamError(f"Failed to connect to {self.ws_url}{self.stream_path}: {e}") from e

        self._runner = asyncio.create_task(self._run(url, ws))

    async def disconnect(self) -> None:
        """Stop reconnecting and close the socket. No-op when idle."""
        runner = self._runner
        if runner is None:
            return
        self._runner = None
        self._stop.set()

        ws = self._ws
        if ws is not None:
            await ws.close()

        # Called from inside a callback: the runner exits on its own
        if runner is asyncio.current_task():
            return
        try:
            await asyncio.wait_for(runner, timeout=5)
        except asyncio.TimeoutError:
            logger.warning("Timeout waiting for stream reader to stop; cancelled")
        logger.info("Stream disconnected")

    def events(self) -> AsyncIterator[WSEvent]:
        """Iterate over stream events until the stream is disconnected.

        The subscription starts when this is called, not on first iteration,
        so no event is missed between subscribing and iterating.
        """
        queue: asyncio.Queue = asyncio.Queue()
        if self.is_running:
            self._subscribers.add(queue)
        else:
            queue.put_nowait(_CLOSED)
        return self._drain(queue)

    async def _drain(self, queue: asyncio.Queue) -> AsyncIterator[WSEvent]:
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            self._subscribers.discard(queue)

    # ======================
    # Internals
    # ======================

    async def _open(self, url: str) -> ClientConnection:
        logger.info(f"Connecting stream: {self.ws_url}{self.stream_path}")
        ws = await connect(url, open_timeout=self.open_timeout)
        self._ws = ws
        await invoke_callback(self._callbacks.on_connect)
        return ws

    async def _run(self, url: str, ws: Optional[ClientConnection]) -> None:
        """Read, then reconnect after a fixed delay while the session lasts."""
        try:
            while True:
                if ws is not None:
                    await self._read(ws)
                    self._ws = None
                    await invoke_callback(self._callbacks.on_disconnect)

                if self._stop.is_set() or not self.should_reconnect():
                    break

                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=self.reconnect_delay)
                    break
                except asyncio.TimeoutError:
                    pass

                try:
                    ws = await self._open(url)
                except (OSError, asyncio.TimeoutError, WebSocketException) as e:
                    logger.warning(f"Stream reconnect failed: {e}. Retrying in {self.reconnect_delay}s")
                    await invoke_callback(self._callbacks.on_error, e)
                    ws = None
                    continue

                if self._stop.is_set():
                    await ws.close()
                    break
        finally:
            self._ws = None
            for queue in self._subscribers:
                queue.put_nowait(_CLOSED)

    async def _read(self, ws: ClientConnection) -> None:
        try:
            async for message in ws:
                await self._handle_message(message)
        except ConnectionClosed as e:
            logger.warning(f"Stream closed: {e}")

    async def _handle_message(self, message) -> None:
        """Parse a stream message and fan it out. Malformed messages are dropped."""
        try:
            event = WSEvent.model_validate_json(message)
        except ValidationError as e:
            logger.warning(f"Dropping malformed stream message: {e.errors()[0]['msg']}")
            return

        try:
            await invoke_callback(self._callbacks.on_message, event)
        except Exception as e:
            logger.error(f"Stream message handler failed: {e}")
            await invoke_callback(self._callbacks.on_error, e)

        for queue in self._subscribers:
            queue.put_nowait(event)
