"""Tests for EIP-712 order construction and signing."""

from unittest.mock import AsyncMock

import pytest
from eth_account.messages import encode_typed_data
from eth_utils import keccak

from aori.contracts import QuoteResponse
from aori.errors import SigningError, UnknownChainError
from aori.signing import (
    LocalTypedDataSigner,
    OrderSchema,
    build_order_typed_data,
    recover_order_signer,
    sign_order,
    sign_readable_order,
)

from tests.conftest import (
    ARBITRUM_CONTRACT,
    BASE_CONTRACT,
    ORDER_HASH,
    RECIPIENT,
    TEST_ADDRESS,
    TEST_PRIVATE_KEY,
    quote_payload,
)


@pytest.fixture
def signer() -> LocalTypedDataSigner:
    return LocalTypedDataSigner.from_key(TEST_PRIVATE_KEY)


class TestTypedData:
    """Domain and message construction."""

    def test_domain_uses_input_chain(self, quote, chains):
        base, arbitrum = chains
        typed = build_order_typed_data(quote, base, arbitrum)

        assert typed["domain"] == {
            "name": "Aori",
            "version": "0.3.1",
            "chainId": 8453,
            "verifyingContract": BASE_CONTRACT,
        }
        assert typed["primaryType"] == "Order"

    def test_reverse_direction_uses_other_domain(self, chains):
        base, arbitrum = chains
        quote = QuoteResponse.model_validate(quote_payload(inputChain="arbitrum", outputChain="base"))

        typed = build_order_typed_data(quote, arbitrum, base)

        assert typed["domain"]["chainId"] == 42161
        assert typed["domain"]["verifyingContract"] == ARBITRUM_CONTRACT
        assert typed["message"]["srcEid"] == 30110
        assert typed["message"]["dstEid"] == 30184

    def test_v0_3_message(self, quote, chains):
        typed = build_order_typed_data(quote, *chains)
        message = typed["message"]

        assert [f["type"] for f in typed["types"]["Order"]][:2] == ["uint128", "uint128"]
        assert message["inputAmount"] == 1000000
        assert message["outputAmount"] == 990000
        assert message["startTime"] == 1700000000
        assert message["endTime"] == 1700000600
        assert message["srcEid"] == 30184
        assert message["dstEid"] == 30110
        assert message["offerer"] == TEST_ADDRESS
        assert message["recipient"] == RECIPIENT
        assert "exclusiveSolver" not in message

    def test_legacy_message(self, quote, chains):
        typed = build_order_typed_data(quote, *chains, schema=OrderSchema.LEGACY)

        assert typed["domain"]["version"] == "1"
        assert typed["message"]["exclusiveSolver"] == "0x0000000000000000000000000000000000000000"
        assert typed["message"]["exclusiveSolverDuration"] == 0
        field_types = {f["name"]: f["type"] for f in typed["types"]["Order"]}
        assert field_types["inputAmount"] == "uint256"
        assert field_types["exclusiveSolverDuration"] == "uint16"

    def test_out_of_range_amount_rejected(self, chains):
        quote = QuoteResponse.model_validate(quote_payload(inputAmount=str(2**128)))

        with pytest.raises(SigningError, match="uint128"):
            build_order_typed_data(quote, *chains)

        # Fits the legacy uint256 layout
        build_order_typed_data(quote, *chains, schema=OrderSchema.LEGACY)

    def test_out_of_range_time_rejected(self, chains):
        quote = QuoteResponse.model_validate(quote_payload(endTime=2**32))

        with pytest.raises(SigningError, match="endTime"):
            build_order_typed_data(quote, *chains)


class TestSignReadableOrder:
    """End-to-end signing through the signer capability."""

    @pytest.mark.asyncio
    async def test_returns_quote_order_hash(self, quote, registry, signer):
        signed = await sign_readable_order(quote, signer, TEST_ADDRESS, registry)

        assert signed.order_hash == ORDER_HASH
        assert signed.signature.startswith("0x")
        assert len(signed.signature) == 132

    @pytest.mark.asyncio
    async def test_signature_recovers_to_signer(self, quote, registry, chains, signer):
        signed = await sign_readable_order(quote, signer, TEST_ADDRESS, registry)

        typed = build_order_typed_data(quote, *chains)
        assert recover_order_signer(typed, signed.signature) == TEST_ADDRESS

    @pytest.mark.asyncio
    async def test_signing_is_deterministic(self, quote, registry, signer):
        first = await sign_readable_order(quote, signer, TEST_ADDRESS, registry)
        second = await sign_readable_order(quote, signer, TEST_ADDRESS, registry)

        assert first.signature == second.signature

    @pytest.mark.asyncio
    async def test_schemas_produce_different_signatures(self, quote, registry, signer):
        v03 = await sign_readable_order(quote, signer, TEST_ADDRESS, registry)
        legacy = await sign_readable_order(quote, signer, TEST_ADDRESS, registry, OrderSchema.LEGACY)

        assert v03.signature != legacy.signature

    @pytest.mark.asyncio
    async def test_passes_typed_data_to_signer(self, quote, registry):
        signer = AsyncMock()
        signer.sign_typed_data.return_value = "0xsig"

        signed = await sign_readable_order(quote, signer, TEST_ADDRESS, registry)

        assert signed.signature == "0xsig"
        domain, types, primary_type, message, account = signer.sign_typed_data.await_args.args
        assert domain["chainId"] == 8453
        assert list(types) == ["Order"]
        assert primary_type == "Order"
        assert message["srcEid"] == 30184
        assert account == TEST_ADDRESS

    @pytest.mark.asyncio
    async def test_unknown_chain(self, registry, signer):
        quote = QuoteResponse.model_validate(quote_payload(outputChain="optimism"))

        with pytest.raises(UnknownChainError, match="optimism"):
            await sign_readable_order(quote, signer, TEST_ADDRESS, registry)

    @pytest.mark.asyncio
    async def test_signer_errors_propagate(self, quote, registry):
        signer = AsyncMock()
        signer.sign_typed_data.side_effect = SigningError("User rejected the request")

        with pytest.raises(SigningError, match="User rejected"):
            await sign_readable_order(quote, signer, TEST_ADDRESS, registry)

    @pytest.mark.asyncio
    async def test_local_signer_rejects_other_account(self, quote, registry, signer):
        with pytest.raises(SigningError):
            await sign_readable_order(quote, signer, RECIPIENT, registry)


class TestRawSigning:
    """Signing the server-provided signing hash."""

    def test_sign_order(self, quote, chains):
        # Use the typed-data digest as the server hash so recovery goes through
        # the typed-data path
        typed = build_order_typed_data(quote, *chains)
        signable = encode_typed_data(full_message=typed)
        digest = keccak(b"\x19" + signable.version + signable.header + signable.body)
        hashed = QuoteResponse.model_validate(quote_payload(signingHash="0x" + digest.hex()))

        signature = sign_order(hashed, TEST_PRIVATE_KEY)

        assert len(signature) == 132
        assert recover_order_signer(typed, signature) == TEST_ADDRESS

    def test_sign_order_without_hash(self, chains):
        quote = QuoteResponse.model_validate(quote_payload(signingHash=None))

        with pytest.raises(SigningError):
            sign_order(quote, TEST_PRIVATE_KEY)
