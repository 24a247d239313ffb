"""Native-asset deposit path.

When the input token is the native sentinel there is nothing to approve or
sign: the offerer deposits the coin directly by calling
``depositNative(Order)`` on the input chain's Aori contract with
``value = inputAmount``.
"""

import logging
from typing import Optional

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector

from aori.constants import is_native_token
from aori.contracts import QuoteResponse, TransactionRequest
from aori.registry import ChainRegistry
from aori.signing.order import OrderSchema, build_order_message, resolve_order_chains
from aori.utils.numbers import to_int

logger = logging.getLogger(__name__)


def is_native_swap(quote: QuoteResponse) -> bool:
    """A quote takes the native path iff its input token is the sentinel."""
    return is_native_token(quote.input_token)


def order_tuple_type(schema: OrderSchema = OrderSchema.V0_3) -> str:
    """ABI tuple type of the Order struct, e.g. ``(uint128,uint128,...)``."""
    return "(" + ",".join(field["type"] for field in schema.fields) + ")"


def deposit_native_selector(schema: OrderSchema = OrderSchema.V0_3) -> str:
    selector = function_signature_to_4byte_selector(f"depositNative({order_tuple_type(schema)})")
    return "0x" + selector.hex()


def encode_deposit_native(message: dict, schema: OrderSchema = OrderSchema.V0_3) -> str:
    """Calldata for ``depositNative(order)``."""
    values = tuple(message[field["name"]] for field in schema.fields)
    encoded = encode([order_tuple_type(schema)], [values])
    return deposit_native_selector(schema) + encoded.hex()


def validate_deposit_native_calldata(
    data: str,
    quote: Optional[QuoteResponse] = None,
    schema: OrderSchema = OrderSchema.V0_3,
) -> bool:
    """Check calldata is a ``depositNative`` call (and, given a quote, for it)."""
    if not data or not data.lower().startswith(deposit_native_selector(schema)):
        return False

    try:
        (order,) = decode([order_tuple_type(schema)], bytes.fromhex(data[10:]))
    except (DecodingError, ValueError) as e:
        logger.warning(f"Undecodable depositNative calldata: {e}")
        return False

    if quote is None:
        return True

    decoded = dict(zip((field["name"] for field in schema.fields), order))
    return (
        decoded["inputAmount"] == to_int(quote.input_amount)
        and decoded["offerer"].lower() == quote.offerer.lower()
        and decoded["inputToken"].lower() == quote.input_token.lower()
    )


def construct_native_deposit_transaction(
    quote: QuoteResponse,
    registry: ChainRegistry,
    schema: OrderSchema = OrderSchema.V0_3,
    gas_limit: Optional[int] = None,
) -> TransactionRequest:
    """Build the deposit transaction for a native-path quote.

    Raises:
        ValueError: if the quote is not a native swap or the calldata is malformed
        UnknownChainError: if either chain is not in the registry
    """
    if not is_native_swap(quote):
        raise ValueError(f"Quote {quote.order_hash} is not a native swap (input {quote.input_token})")

    input_chain, output_chain = resolve_order_chains(quote, registry)
    message = build_order_message(quote, input_chain, output_chain, schema)
    data = encode_deposit_native(message, schema)

    if not validate_deposit_native_calldata(data, quote, schema):
        raise ValueError(f"Invalid depositNative calldata for order {quote.order_hash}")

    logger.debug(f"Native deposit for {quote.order_hash} to {input_chain.contract_address}")
    return TransactionRequest(
        to=input_chain.contract_address,
        data=data,
        value=quote.input_amount,
        gas_limit=gas_limit,
        chain_id=input_chain.chain_id,
    )
