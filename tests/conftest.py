"""Pytest configuration and fixtures."""

import asyncio
import json
import os
from typing import Callable, Optional, Union

import httpx
import pytest
import pytest_asyncio

# Keep developer .env / environment out of the tests
for _key in [k for k in os.environ if k.startswith("AORI_")]:
    del os.environ[_key]

from aori.api import AoriApi
from aori.constants import NATIVE_TOKEN_ADDRESS
from aori.contracts import ChainInfo, OrderStatus, QuoteResponse, TransactionReceipt, TransactionRequest
from aori.execution.base import TransactionExecutor
from aori.registry import ChainRegistry

# Hardhat account #0
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

BASE_CONTRACT = "0x" + "11" * 20
ARBITRUM_CONTRACT = "0x" + "22" * 20
USDC_BASE = "0x" + "33" * 20
USDC_ARBITRUM = "0x" + "44" * 20
RECIPIENT = "0x" + "55" * 20

ORDER_HASH = "0x" + "ab" * 32

CHAINS_PAYLOAD = [
    {
        "chainKey": "base",
        "chainId": 8453,
        "eid": 30184,
        "address": BASE_CONTRACT,
        "blocktime": 2,
    },
    {
        "chainKey": "arbitrum",
        "chainId": 42161,
        "eid": 30110,
        "address": ARBITRUM_CONTRACT,
        "blocktime": 0.25,
    },
]

TOKENS_PAYLOAD = [
    {"address": USDC_BASE, "chainKey": "base", "chainId": 8453, "symbol": "USDC", "decimals": 6},
    {"address": NATIVE_TOKEN_ADDRESS, "chainKey": "base", "chainId": 8453, "symbol": "ETH"},
    {"address": USDC_ARBITRUM, "chainKey": "arbitrum", "chainId": 42161, "symbol": "USDC"},
]


def quote_payload(**overrides) -> dict:
    """Quote as returned by POST /quote."""
    payload = {
        "orderHash": ORDER_HASH,
        "signingHash": "0x" + "cd" * 32,
        "offerer": TEST_ADDRESS,
        "recipient": RECIPIENT,
        "inputToken": USDC_BASE,
        "outputToken": USDC_ARBITRUM,
        "inputAmount": "1000000",
        "outputAmount": "990000",
        "inputChain": "base",
        "outputChain": "arbitrum",
        "startTime": 1700000000,
        "endTime": "1700000600",
        "estimatedTime": 12,
    }
    payload.update(overrides)
    return payload


def swap_payload(**overrides) -> dict:
    payload = {key: value for key, value in quote_payload().items() if key not in ("signingHash", "estimatedTime")}
    payload.update({"status": "pending", "createdAt": 1700000001})
    payload.update(overrides)
    return payload


Handler = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class MockAoriServer:
    """Routes requests by (method, path) and records them."""

    def __init__(self):
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []
        self.on("GET", "/chains", json=CHAINS_PAYLOAD)

    def on(self, method: str, path: str, handler: Optional[Handler] = None, status: int = 200, json=None, text=None):
        if handler is None:
            if json is not None:
                handler = httpx.Response(status, json=json)
            else:
                handler = httpx.Response(status, text=text or "")
        self.routes[(method, path)] = handler

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, text=f"No route for {request.method} {request.url.path}")
        if callable(handler):
            return handler(request)
        return handler

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content)


class FakeExecutor(TransactionExecutor):
    """In-memory executor recording every call."""

    def __init__(
        self,
        chain_id: int = 8453,
        receipt_status: int = 1,
        follow_switch: bool = True,
        call_result: str = "0x" + "00" * 32,
    ):
        self.chain_id = chain_id
        self.receipt_status = receipt_status
        self.follow_switch = follow_switch
        self.call_result = call_result
        self.sent: list[TransactionRequest] = []
        self.calls: list[TransactionRequest] = []
        self.switch_requests: list[int] = []
        self.chain_id_checks = 0
        self.estimated: list[TransactionRequest] = []

    @property
    def address(self) -> str:
        return TEST_ADDRESS

    async def send_transaction(self, tx: TransactionRequest) -> str:
        self.sent.append(tx)
        return "0x" + f"{len(self.sent):064x}"

    async def wait_for_transaction(self, tx_hash: str, timeout=None) -> TransactionReceipt:
        return TransactionReceipt(tx_hash=tx_hash, status=self.receipt_status, block_number=1, gas_used=21000)

    async def estimate_gas(self, tx: TransactionRequest) -> int:
        self.estimated.append(tx)
        return 100_000

    async def get_chain_id(self) -> int:
        self.chain_id_checks += 1
        return self.chain_id

    async def call(self, tx: TransactionRequest) -> str:
        self.calls.append(tx)
        return self.call_result

    async def switch_chain(self, chain_id: int) -> None:
        self.switch_requests.append(chain_id)
        if self.follow_switch:
            self.chain_id = chain_id


@pytest.fixture
def chains() -> list[ChainInfo]:
    return [ChainInfo.model_validate(item) for item in CHAINS_PAYLOAD]


@pytest.fixture
def registry(chains) -> ChainRegistry:
    return ChainRegistry(chains)


@pytest.fixture
def quote() -> QuoteResponse:
    """ERC20 quote base USDC -> arbitrum USDC."""
    return QuoteResponse.model_validate(quote_payload())


@pytest.fixture
def native_quote() -> QuoteResponse:
    return QuoteResponse.model_validate(
        quote_payload(inputToken=NATIVE_TOKEN_ADDRESS, inputAmount="1000000000000000000")
    )


@pytest.fixture
def server() -> MockAoriServer:
    return MockAoriServer()


@pytest_asyncio.fixture
async def api(server):
    """API client backed by the mock server."""
    client = AoriApi(base_url="https://api.test", api_key="test-key", transport=server.transport)
    yield client
    await client.close()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


class ScriptedSource:
    """Status source returning scripted statuses in order, then repeating the last one."""

    def __init__(self, *statuses, delay: float = 0):
        self.statuses = list(statuses)
        self.delay = delay
        self.fetches = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_order_status(self, order_hash: str) -> OrderStatus:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            item = self.statuses[min(self.fetches, len(self.statuses) - 1)]
            self.fetches += 1
            if isinstance(item, Exception):
                raise item
            return OrderStatus(status=item, order_hash=order_hash)
        finally:
            self.in_flight -= 1
