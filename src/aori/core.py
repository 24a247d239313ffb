"""Aori engine facade.

One ``Aori`` instance owns its settings, HTTP client, registry snapshot and
WebSocket stream. Nothing is shared between instances.

Usage:
    async with await Aori.create(api_key="...") as aori:
        quote = await aori.get_quote(request)
        outcome = await aori.execute_swap(quote, Erc20SwapConfig(signer, address), track=True)
"""

import logging
from collections.abc import AsyncIterator
from typing import Optional, Union

import httpx

from aori.api import AoriApi
from aori.cancellation import CancellationEngine
from aori.config import Settings, get_settings
from aori.contracts import (
    CancelOrderResponse,
    ChainInfo,
    OrderDetails,
    OrderStatus,
    QueryOrdersParams,
    QueryOrdersResponse,
    QuoteRequest,
    QuoteResponse,
    SubscriptionParams,
    SwapRequest,
    SwapResponse,
    TokenInfo,
    WSEvent,
)
from aori.execution.allowance import Erc20Allowance
from aori.execution.base import TransactionExecutor
from aori.registry import ChainRegistry
from aori.signing.base import SignedOrder, TypedDataSigner
from aori.signing.order import OrderSchema, sign_readable_order
from aori.swap.dispatcher import Erc20SwapConfig, SwapConfig, SwapDispatcher, SwapOutcome
from aori.tracking.poller import (
    CompleteCallback,
    ErrorCallback,
    StatusChangeCallback,
    poll_order_status,
)
from aori.tracking.stream import OrderStream, StreamCallbacks
from aori.tracking.tracker import OrderTracker

logger = logging.getLogger(__name__)

ChainRef = Union[str, int]


class Aori:
    """Client for the Aori order protocol.

    Prefer ``Aori.create``, which loads the chain registry before returning.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.schema = OrderSchema(self.settings.order_schema)
        self.registry = ChainRegistry()
        self.api = AoriApi(
            base_url=self.settings.api_url,
            api_key=self.settings.api_key,
            timeout=self.settings.request_timeout,
            status_path=self.settings.status_path,
            cancel_path=self.settings.cancel_path,
            transport=transport,
        )
        self.stream = OrderStream(
            ws_url=self.settings.ws_base_url,
            stream_path=self.settings.stream_path,
            api_key=self.settings.api_key,
            reconnect_delay=self.settings.stream_reconnect_delay,
        )
        self.tracker = OrderTracker(
            self.api,
            stream=self.stream,
            interval=self.settings.poll_interval,
            timeout=self.settings.poll_timeout,
            confirm_streamed_terminal=self.settings.confirm_streamed_terminal,
        )
        self.dispatcher = SwapDispatcher(
            self.api,
            self.registry,
            self.schema,
            tracker=self.tracker,
            chain_switch_attempts=self.settings.chain_switch_attempts,
            chain_switch_interval=self.settings.chain_switch_interval,
        )
        self.cancellation = CancellationEngine(
            self.api,
            self.registry,
            chain_switch_attempts=self.settings.chain_switch_attempts,
            chain_switch_interval=self.settings.chain_switch_interval,
            gas_limit_buffer=self.settings.gas_limit_buffer,
        )

    @classmethod
    async def create(
        cls,
        api_url: Optional[str] = None,
        ws_url: Optional[str] = None,
        api_key: Optional[str] = None,
        load_tokens: Optional[bool] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **overrides,
    ) -> "Aori":
        """Create an instance and load up-to-date chain deployments.

        Explicit arguments override ``settings`` (or the environment).
        """
        base = settings or get_settings()
        updates = {
            key: value
            for key, value in {
                "api_url": api_url,
                "ws_url": ws_url,
                "api_key": api_key,
                "load_tokens": load_tokens,
                **overrides,
            }.items()
            if value is not None
        }
        aori = cls(base.model_copy(update=updates), transport=transport)
        try:
            await aori.load_chains()
            if aori.settings.load_tokens:
                await aori.load_tokens()
        except Exception:
            await aori.close()
            raise
        logger.info(f"Aori client ready: {len(aori.registry.chains)} chains at {aori.settings.api_url}")
        return aori

    async def close(self) -> None:
        await self.stream.disconnect()
        await self.api.close()

    async def __aenter__(self) -> "Aori":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # ======================
    # Chains and tokens
    # ======================

    async def load_chains(self) -> None:
        self.registry.load_chains(await self.api.fetch_chains())

    def get_chain(self, chain: ChainRef) -> Optional[ChainInfo]:
        """Chain by key (case-insensitive) or chain id."""
        return self.registry.get_chain(chain)

    def get_chain_by_eid(self, eid: int) -> Optional[ChainInfo]:
        return self.registry.get_chain_by_eid(eid)

    def get_all_chains(self) -> dict[str, ChainInfo]:
        return dict(self.registry.chains)

    async def load_tokens(self, chain: Optional[ChainRef] = None) -> None:
        """Replace the token cache, optionally with one chain's tokens only."""
        self.registry.load_tokens(await self.api.fetch_tokens(chain))

    def get_all_tokens(self) -> list[TokenInfo]:
        return list(self.registry.tokens)

    def get_tokens(self, chain: ChainRef) -> list[TokenInfo]:
        """Cached tokens for a chain."""
        return self.registry.get_tokens(chain)

    async def fetch_tokens(self, chain: ChainRef) -> list[TokenInfo]:
        """Tokens for a chain straight from the API, bypassing the cache."""
        return await self.api.fetch_tokens(chain)

    def get_token_decimals(self, token: TokenInfo) -> int:
        return self.registry.get_token_decimals(token)

    # ======================
    # Quotes, signing, submission
    # ======================

    async def get_quote(self, request: QuoteRequest) -> QuoteResponse:
        return await self.api.get_quote(request)

    async def sign_readable_order(
        self, quote: QuoteResponse, signer: TypedDataSigner, user_address: str
    ) -> SignedOrder:
        return await sign_readable_order(quote, signer, user_address, self.registry, self.schema)

    async def submit_swap(self, request: SwapRequest) -> SwapResponse:
        return await self.api.submit_swap(request)

    async def execute_swap(
        self,
        quote: QuoteResponse,
        config: SwapConfig,
        track: bool = False,
        executor: Optional[TransactionExecutor] = None,
    ) -> SwapOutcome:
        """Execute a quote down the native or ERC20 path.

        Passing ``executor`` for an ERC20 quote without an explicit allowance
        manager enables the allowance check through that executor.
        """
        if isinstance(config, Erc20SwapConfig) and config.allowance is None and executor is not None:
            config = Erc20SwapConfig(
                signer=config.signer,
                user_address=config.user_address,
                allowance=Erc20Allowance(
                    executor,
                    chain_switch_attempts=self.settings.chain_switch_attempts,
                    chain_switch_interval=self.settings.chain_switch_interval,
                ),
            )
        return await self.dispatcher.execute_swap(quote, config, track=track)

    # ======================
    # Order data
    # ======================

    async def get_order_status(self, order_hash: str) -> OrderStatus:
        return await self.api.get_order_status(order_hash)

    async def get_order_details(self, order_hash: str) -> OrderDetails:
        return await self.api.get_order_details(order_hash)

    async def query_orders(self, params: Optional[QueryOrdersParams] = None) -> QueryOrdersResponse:
        return await self.api.query_orders(params)

    async def poll_order_status(
        self,
        order_hash: str,
        on_status_change: Optional[StatusChangeCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> OrderStatus:
        return await poll_order_status(
            self.api,
            order_hash,
            interval=self.settings.poll_interval if interval is None else interval,
            timeout=self.settings.poll_timeout if timeout is None else timeout,
            on_status_change=on_status_change,
            on_complete=on_complete,
            on_error=on_error,
        )

    async def track_order(
        self,
        order_hash: str,
        on_status_change: Optional[StatusChangeCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
    ) -> OrderStatus:
        """Wait for a terminal status using polling plus the stream, if connected."""
        return await self.tracker.wait_for_terminal(order_hash, on_status_change, on_complete)

    # ======================
    # Stream
    # ======================

    async def connect(
        self,
        params: Optional[SubscriptionParams] = None,
        callbacks: Optional[StreamCallbacks] = None,
    ) -> None:
        await self.stream.connect(params, callbacks)

    async def disconnect(self) -> None:
        await self.stream.disconnect()

    def is_connected(self) -> bool:
        return self.stream.is_connected()

    def events(self) -> AsyncIterator[WSEvent]:
        return self.stream.events()

    # ======================
    # Cancellation
    # ======================

    async def cancel_order(
        self, order_hash: str, executor: TransactionExecutor
    ) -> CancelOrderResponse:
        return await self.cancellation.cancel_order(order_hash, executor)
