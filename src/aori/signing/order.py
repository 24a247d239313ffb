"""EIP-712 order construction and signing.

The order is always signed against the input chain's domain (its chain id
and Aori contract), including cross-chain swaps. The order hash is never
recomputed locally: the signature is paired with the quote's own hash.
"""

import logging
from enum import Enum
from typing import Any

from eth_account import Account
from eth_account.messages import encode_typed_data

from aori.constants import ZERO_ADDRESS
from aori.contracts import ChainInfo, QuoteResponse
from aori.errors import SigningError
from aori.registry import ChainRegistry
from aori.signing.base import SignedOrder, TypedDataSigner
from aori.signing.local import eip712_domain_fields, to_hex
from aori.utils.numbers import check_uint, to_int

logger = logging.getLogger(__name__)

DOMAIN_NAME = "Aori"
PRIMARY_TYPE = "Order"


class OrderSchema(str, Enum):
    """Order struct layout, by protocol version."""
    V0_3 = "v0.3"
    LEGACY = "legacy"

    @property
    def domain_version(self) -> str:
        return _DOMAIN_VERSIONS[self]

    @property
    def fields(self) -> list[dict[str, str]]:
        return [{"name": name, "type": type_} for name, type_ in _ORDER_FIELDS[self]]


_DOMAIN_VERSIONS = {
    OrderSchema.V0_3: "0.3.1",
    OrderSchema.LEGACY: "1",
}

# Field order is part of the type hash
_ORDER_FIELDS = {
    OrderSchema.V0_3: (
        ("inputAmount", "uint128"),
        ("outputAmount", "uint128"),
        ("inputToken", "address"),
        ("outputToken", "address"),
        ("startTime", "uint32"),
        ("endTime", "uint32"),
        ("srcEid", "uint32"),
        ("dstEid", "uint32"),
        ("offerer", "address"),
        ("recipient", "address"),
    ),
    OrderSchema.LEGACY: (
        ("offerer", "address"),
        ("recipient", "address"),
        ("inputToken", "address"),
        ("outputToken", "address"),
        ("exclusiveSolver", "address"),
        ("inputAmount", "uint256"),
        ("outputAmount", "uint256"),
        ("startTime", "uint256"),
        ("endTime", "uint256"),
        ("srcEid", "uint32"),
        ("dstEid", "uint32"),
        ("exclusiveSolverDuration", "uint16"),
    ),
}


def build_domain(input_chain: ChainInfo, schema: OrderSchema = OrderSchema.V0_3) -> dict[str, Any]:
    """EIP-712 domain for orders originating on ``input_chain``."""
    return {
        "name": DOMAIN_NAME,
        "version": schema.domain_version,
        "chainId": input_chain.chain_id,
        "verifyingContract": input_chain.contract_address,
    }


def build_order_message(
    quote: QuoteResponse,
    input_chain: ChainInfo,
    output_chain: ChainInfo,
    schema: OrderSchema = OrderSchema.V0_3,
) -> dict[str, Any]:
    """Order struct values for ``quote``, width-checked for ``schema``.

    Raises:
        SigningError: if any integer does not fit its declared width
    """
    values: dict[str, Any] = {
        "offerer": quote.offerer,
        "recipient": quote.recipient,
        "inputToken": quote.input_token,
        "outputToken": quote.output_token,
        "inputAmount": quote.input_amount,
        "outputAmount": quote.output_amount,
        "startTime": quote.start_time,
        "endTime": quote.end_time,
        "srcEid": input_chain.endpoint_id,
        "dstEid": output_chain.endpoint_id,
        "exclusiveSolver": quote.exclusive_solver or ZERO_ADDRESS,
        "exclusiveSolverDuration": quote.exclusive_solver_duration or 0,
    }

    message = {}
    for name, type_ in _ORDER_FIELDS[schema]:
        value = values[name]
        if type_.startswith("uint"):
            try:
                value = check_uint(to_int(value), int(type_[4:]), name)
            except ValueError as e:
                raise SigningError(f"Invalid order field: {e}") from e
        message[name] = value
    return message


def build_order_typed_data(
    quote: QuoteResponse,
    input_chain: ChainInfo,
    output_chain: ChainInfo,
    schema: OrderSchema = OrderSchema.V0_3,
) -> dict[str, Any]:
    """Full EIP-712 payload (types, primaryType, domain, message)."""
    domain = build_domain(input_chain, schema)
    return {
        "types": {
            "EIP712Domain": eip712_domain_fields(domain),
            PRIMARY_TYPE: schema.fields,
        },
        "primaryType": PRIMARY_TYPE,
        "domain": domain,
        "message": build_order_message(quote, input_chain, output_chain, schema),
    }


def resolve_order_chains(
    quote: QuoteResponse, registry: ChainRegistry
) -> tuple[ChainInfo, ChainInfo]:
    """Input and output chains for a quote; UnknownChainError if missing."""
    return registry.require_chain(quote.input_chain), registry.require_chain(quote.output_chain)


async def sign_readable_order(
    quote: QuoteResponse,
    signer: TypedDataSigner,
    user_address: str,
    registry: ChainRegistry,
    schema: OrderSchema = OrderSchema.V0_3,
) -> SignedOrder:
    """Sign a quote as an EIP-712 order.

    Args:
        quote: Quote to sign
        signer: Typed-data signing capability
        user_address: Account expected to sign
        registry: Chain snapshot used to resolve domain and endpoint ids
        schema: Order struct layout

    Returns:
        SignedOrder with the quote's order hash and the signature

    Raises:
        UnknownChainError: if either chain is not in the registry
        SigningError: on out-of-range fields or signer failure
    """
    input_chain, output_chain = resolve_order_chains(quote, registry)
    typed_data = build_order_typed_data(quote, input_chain, output_chain, schema)

    types = {PRIMARY_TYPE: typed_data["types"][PRIMARY_TYPE]}
    signature = await signer.sign_typed_data(
        typed_data["domain"],
        types,
        PRIMARY_TYPE,
        typed_data["message"],
        user_address,
    )

    logger.info(f"Signed order {quote.order_hash} ({input_chain.chain_key} -> {output_chain.chain_key})")
    return SignedOrder(order_hash=quote.order_hash, signature=signature)


def recover_order_signer(typed_data: dict[str, Any], signature: str) -> str:
    """Recover the address that signed ``typed_data``."""
    signable = encode_typed_data(full_message=typed_data)
    return Account.recover_message(signable, signature=signature)


def sign_order(quote: QuoteResponse, private_key: str) -> str:
    """Sign the quote's raw ``signing_hash`` (older API versions).

    Returns:
        ``r || s || v`` signature as a 0x-prefixed hex string
    """
    if not quote.signing_hash:
        raise SigningError(f"Quote {quote.order_hash} has no signing hash")

    signing_hash = quote.signing_hash
    if not signing_hash.startswith("0x"):
        signing_hash = "0x" + signing_hash

    try:
        signed = Account.unsafe_sign_hash(bytes.fromhex(signing_hash[2:]), private_key)
    except (ValueError, TypeError) as e:
        raise SigningError(f"Raw order signing failed: {e}") from e
    return to_hex(signed.signature)
