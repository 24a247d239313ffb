"""Order signing: typed-data signer capability and EIP-712 order builders."""

from aori.signing.base import SignedOrder, SignerType, TypedDataSigner
from aori.signing.local import LocalTypedDataSigner
from aori.signing.order import (
    OrderSchema,
    build_domain,
    build_order_message,
    build_order_typed_data,
    recover_order_signer,
    sign_order,
    sign_readable_order,
)

__all__ = [
    "SignedOrder",
    "SignerType",
    "TypedDataSigner",
    "LocalTypedDataSigner",
    "OrderSchema",
    "build_domain",
    "build_order_message",
    "build_order_typed_data",
    "recover_order_signer",
    "sign_order",
    "sign_readable_order",
]
