"""Base interface for typed-data signing.

Signing flow:
1. Build the EIP-712 domain, types and message
2. Hand them to a signer for a specific account
3. Signer returns a 65-byte ``r || s || v`` signature (never the key)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class SignerType(str, Enum):
    """Type of signing backend."""
    LOCAL = "local"           # Private key in memory
    WALLET = "wallet"         # External wallet (browser extension, hardware, remote)


@dataclass
class SignedOrder:
    """Signature paired with the order hash the server computed.

    Attributes:
        order_hash: Quote's order hash, echoed unchanged on submission
        signature: Hex encoded EIP-712 signature
    """
    order_hash: str
    signature: str


class TypedDataSigner(ABC):
    """Capability: sign EIP-712 typed data on behalf of an account.

    Implementations raise ``SigningError`` on rejection or malformed input;
    callers let the error propagate unchanged.
    """

    def __init__(self, signer_type: SignerType):
        self.signer_type = signer_type

    @abstractmethod
    async def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        primary_type: str,
        message: dict[str, Any],
        account: Optional[str] = None,
    ) -> str:
        """Sign typed data.

        Args:
            domain: EIP-712 domain (name, version, chainId, verifyingContract)
            types: Struct definitions, excluding ``EIP712Domain``
            primary_type: Name of the struct being signed
            message: Struct values
            account: Address expected to sign; None means the signer's default

        Returns:
            Signature as a 0x-prefixed hex string
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self.signer_type.value})"
