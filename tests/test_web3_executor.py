"""Tests for the web3.py executor (no RPC traffic)."""

import pytest

from aori.contracts import TransactionRequest
from aori.errors import UnsupportedChainError
from aori.execution import Web3TransactionExecutor

from tests.conftest import TEST_ADDRESS, TEST_PRIVATE_KEY, USDC_BASE

RPC_URLS = {8453: "http://127.0.0.1:8545", 42161: "http://127.0.0.1:8546"}


@pytest.fixture
def web3_executor() -> Web3TransactionExecutor:
    return Web3TransactionExecutor.from_key(TEST_PRIVATE_KEY, RPC_URLS)


class TestChains:
    """Chain selection."""

    @pytest.mark.asyncio
    async def test_defaults_to_first_chain(self, web3_executor):
        assert web3_executor.address == TEST_ADDRESS
        assert await web3_executor.get_chain_id() == 8453

    @pytest.mark.asyncio
    async def test_switch_chain(self, web3_executor):
        await web3_executor.switch_chain(42161)

        assert await web3_executor.get_chain_id() == 42161
        assert web3_executor.web3.provider.endpoint_uri == RPC_URLS[42161]

    @pytest.mark.asyncio
    async def test_switch_to_unknown_chain(self, web3_executor):
        with pytest.raises(UnsupportedChainError):
            await web3_executor.switch_chain(10)

        assert await web3_executor.get_chain_id() == 8453

    def test_initial_chain_must_be_configured(self):
        with pytest.raises(UnsupportedChainError):
            Web3TransactionExecutor.from_key(TEST_PRIVATE_KEY, RPC_URLS, chain_id=10)

    def test_requires_rpc_urls(self):
        with pytest.raises(ValueError):
            Web3TransactionExecutor.from_key(TEST_PRIVATE_KEY, {})


class TestParams:
    def test_transaction_params(self, web3_executor):
        tx = TransactionRequest(to=USDC_BASE, data="0x1234", value="1e18", gas_limit=50000)

        params = web3_executor._to_params(tx)

        assert params["from"] == TEST_ADDRESS
        assert params["to"].lower() == USDC_BASE
        assert params["value"] == 10**18
        assert params["gas"] == 50000

    def test_gas_omitted_without_limit(self, web3_executor):
        params = web3_executor._to_params(TransactionRequest(to=USDC_BASE))

        assert "gas" not in params
        assert params["data"] == "0x"
