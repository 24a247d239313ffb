"""Tests for the REST client."""

import httpx
import pytest

from aori.api import AoriApi
from aori.contracts import QueryOrdersParams, QuoteRequest, SwapRequest
from aori.errors import ApiError, NetworkError, QuoteError

from tests.conftest import (
    ORDER_HASH,
    TEST_ADDRESS,
    TOKENS_PAYLOAD,
    USDC_ARBITRUM,
    USDC_BASE,
    quote_payload,
    request_json,
    swap_payload,
)


def make_quote_request(amount="1000000") -> QuoteRequest:
    return QuoteRequest(
        offerer=TEST_ADDRESS,
        recipient=TEST_ADDRESS,
        input_token=USDC_BASE,
        output_token=USDC_ARBITRUM,
        input_amount=amount,
        input_chain="base",
        output_chain="arbitrum",
    )


class TestQuotes:
    """Quote and swap submission."""

    @pytest.mark.asyncio
    async def test_get_quote(self, api, server):
        server.on("POST", "/quote", json=quote_payload())

        quote = await api.get_quote(make_quote_request("1e6"))

        assert quote.order_hash == ORDER_HASH
        body = request_json(server.calls("POST", "/quote")[0])
        assert body["inputAmount"] == "1000000"
        assert body["inputChain"] == "base"

    @pytest.mark.asyncio
    async def test_api_key_header(self, api, server):
        server.on("POST", "/quote", json=quote_payload())

        await api.get_quote(make_quote_request())

        assert server.requests[-1].headers["x-api-key"] == "test-key"

    @pytest.mark.asyncio
    async def test_no_api_key_header_without_key(self, server):
        async with AoriApi(base_url="https://api.test", transport=server.transport) as client:
            await client.fetch_chains()
        assert "x-api-key" not in server.requests[-1].headers

    @pytest.mark.asyncio
    async def test_quote_error_keeps_server_text(self, api, server):
        server.on("POST", "/quote", status=400, text="Insufficient liquidity")

        with pytest.raises(QuoteError) as exc_info:
            await api.get_quote(make_quote_request())

        assert "Insufficient liquidity" in str(exc_info.value)
        assert exc_info.value.status_code == 400
        # Quotes are never retried
        assert len(server.calls("POST", "/quote")) == 1

    @pytest.mark.asyncio
    async def test_quote_network_failure(self, server):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        server.on("POST", "/quote", fail)
        async with AoriApi(base_url="https://api.test", transport=server.transport) as client:
            with pytest.raises(QuoteError) as exc_info:
                await client.get_quote(make_quote_request())

        assert isinstance(exc_info.value.__cause__, NetworkError)

    @pytest.mark.asyncio
    async def test_submit_swap(self, api, server):
        server.on("POST", "/swap", json=swap_payload(status="Pending"))

        response = await api.submit_swap(SwapRequest(order_hash=ORDER_HASH, signature="0x1234"))

        assert response.status == "pending"
        assert request_json(server.calls("POST", "/swap")[0]) == {
            "orderHash": ORDER_HASH,
            "signature": "0x1234",
        }

    @pytest.mark.asyncio
    async def test_submit_swap_error(self, api, server):
        server.on("POST", "/swap", status=422, text="Invalid signature")

        with pytest.raises(ApiError) as exc_info:
            await api.submit_swap(SwapRequest(order_hash=ORDER_HASH, signature="0x00"))

        assert exc_info.value.status_code == 422
        assert exc_info.value.server_message == "Invalid signature"
        assert exc_info.value.endpoint == "/swap"


class TestOrderData:
    """Status, details and queries."""

    @pytest.mark.asyncio
    async def test_get_order_status_default_path(self, api, server):
        server.on("GET", f"/data/status/{ORDER_HASH}", json={"status": "Completed", "txHash": "0x01"})

        status = await api.get_order_status(ORDER_HASH)

        assert status.status == "completed"
        assert status.order_hash == ORDER_HASH

    @pytest.mark.asyncio
    async def test_get_order_status_configurable_path(self, server):
        server.on("GET", f"/swap/{ORDER_HASH}", json=swap_payload(status="received"))

        async with AoriApi(
            base_url="https://api.test",
            status_path="/swap/{order_hash}",
            transport=server.transport,
        ) as client:
            status = await client.get_order_status(ORDER_HASH)

        assert status.status == "received"

    @pytest.mark.asyncio
    async def test_get_order_details(self, api, server):
        server.on(
            "GET",
            f"/data/details/{ORDER_HASH}",
            json={**swap_payload(), "events": [{"eventType": "created", "timestamp": 1}]},
        )

        details = await api.get_order_details(ORDER_HASH)

        assert details.order_hash == ORDER_HASH
        assert details.events[0].event_type == "created"

    @pytest.mark.asyncio
    async def test_query_orders(self, api, server):
        server.on(
            "GET",
            "/data/query",
            json={
                "orders": [swap_payload(status="completed")],
                "pagination": {"currentPage": 1, "limit": 10, "totalRecords": 1, "totalPages": 1},
            },
        )

        result = await api.query_orders(QueryOrdersParams(offerer=TEST_ADDRESS, limit=10))

        assert result.orders[0].status == "completed"
        assert result.pagination.total_records == 1
        request = server.calls("GET", "/data/query")[0]
        assert request.url.params["offerer"] == TEST_ADDRESS
        assert request.url.params["limit"] == "10"

    @pytest.mark.asyncio
    async def test_query_orders_404_is_empty(self, api, server):
        server.on("GET", "/data/query", status=404, text="No orders found")

        result = await api.query_orders(QueryOrdersParams(page=3, limit=5))

        assert result.orders == []
        assert result.pagination.current_page == 3
        assert result.pagination.limit == 5

    @pytest.mark.asyncio
    async def test_status_error_is_api_error(self, api, server):
        server.on("GET", f"/data/status/{ORDER_HASH}", status=500, text="boom")

        with pytest.raises(ApiError) as exc_info:
            await api.get_order_status(ORDER_HASH)

        assert exc_info.value.endpoint == f"/data/status/{ORDER_HASH}"


class TestRegistryEndpoints:
    """Chains, tokens and cancel data."""

    @pytest.mark.asyncio
    async def test_fetch_chains(self, api):
        chains = await api.fetch_chains()
        assert [c.chain_key for c in chains] == ["base", "arbitrum"]

    @pytest.mark.asyncio
    async def test_fetch_chains_mapping_form(self, api, server):
        server.on(
            "GET",
            "/chains",
            json={"base": {"chainKey": "base", "chainId": 8453, "eid": 30184, "address": USDC_BASE}},
        )
        chains = await api.fetch_chains()
        assert chains[0].chain_id == 8453

    @pytest.mark.asyncio
    async def test_fetch_tokens_filters(self, api, server):
        server.on("GET", "/tokens", json=TOKENS_PAYLOAD)

        await api.fetch_tokens("Base")
        await api.fetch_tokens(42161)
        tokens = await api.fetch_tokens()

        requests = server.calls("GET", "/tokens")
        assert requests[0].url.params["chainKey"] == "base"
        assert requests[1].url.params["chainId"] == "42161"
        assert not requests[2].url.params
        assert len(tokens) == 3

    @pytest.mark.asyncio
    async def test_get_cancel_tx(self, api, server):
        server.on(
            "GET",
            f"/cancel/{ORDER_HASH}",
            json={"chain": "base", "to": USDC_BASE, "value": "1500000000000000", "data": "0xdead"},
        )

        cancel_tx = await api.get_cancel_tx(ORDER_HASH)

        assert cancel_tx.order_hash == ORDER_HASH
        assert cancel_tx.is_cross_chain

    @pytest.mark.asyncio
    async def test_cancel_tx_bad_body_is_api_error(self, api, server):
        server.on("GET", f"/cancel/{ORDER_HASH}", text="<html>gateway</html>")

        with pytest.raises(ApiError) as exc_info:
            await api.get_cancel_tx(ORDER_HASH)

        assert exc_info.value.status_code == 200
        assert exc_info.value.server_message == "<html>gateway</html>"

    @pytest.mark.asyncio
    async def test_chains_bad_body_is_api_error(self, api, server):
        server.on("GET", "/chains", text="not json")

        with pytest.raises(ApiError):
            await api.fetch_chains()
