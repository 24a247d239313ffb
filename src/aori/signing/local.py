"""Local signing backend.

Uses an in-memory eth-account key. Suitable for:
- Development/testing
- Bots and scripts that own their key

WARNING: The private key is held in memory. Use an external wallet signer
for accounts holding significant funds.
"""

import logging
from typing import Any, Optional

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount

from aori.errors import SigningError
from aori.signing.base import SignerType, TypedDataSigner

logger = logging.getLogger(__name__)


def to_hex(signature: bytes) -> str:
    text = bytes(signature).hex()
    return text if text.startswith("0x") else "0x" + text


class LocalTypedDataSigner(TypedDataSigner):
    """Typed-data signer backed by an eth-account ``LocalAccount``."""

    def __init__(self, account: LocalAccount):
        super().__init__(SignerType.LOCAL)
        self._account = account

    @classmethod
    def from_key(cls, private_key: str) -> "LocalTypedDataSigner":
        """Create a signer from a hex private key."""
        try:
            return cls(Account.from_key(private_key))
        except (ValueError, TypeError) as e:
            raise SigningError(f"Invalid private key: {e}") from e

    @property
    def address(self) -> str:
        return self._account.address

    async def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        primary_type: str,
        message: dict[str, Any],
        account: Optional[str] = None,
    ) -> str:
        """Sign typed data with the local key."""
        if account is not None and account.lower() != self.address.lower():
            raise SigningError(
                f"Signer holds {self.address}, cannot sign for {account}"
            )

        full_message = {
            "types": {"EIP712Domain": eip712_domain_fields(domain), **types},
            "primaryType": primary_type,
            "domain": domain,
            "message": message,
        }

        try:
            signable = encode_typed_data(full_message=full_message)
            signed = self._account.sign_message(signable)
        except Exception as e:
            logger.error(f"Local typed-data signing failed: {e}")
            raise SigningError(f"Typed-data signing failed: {e}") from e

        logger.debug(f"Signed {primary_type} for {self.address}")
        return to_hex(signed.signature)


# Canonical order of the optional EIP712Domain members
_DOMAIN_FIELDS = (
    ("name", "string"),
    ("version", "string"),
    ("chainId", "uint256"),
    ("verifyingContract", "address"),
    ("salt", "bytes32"),
)


def eip712_domain_fields(domain: dict[str, Any]) -> list[dict[str, str]]:
    """EIP712Domain type definition for the members present in ``domain``."""
    return [
        {"name": name, "type": type_}
        for name, type_ in _DOMAIN_FIELDS
        if name in domain
    ]
