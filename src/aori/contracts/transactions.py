"""Transaction contracts shared by the executor, dispatcher and cancellation.

These describe unsigned transactions handed to a ``TransactionExecutor``.
Values are exact integers; anything arriving as hex, scientific notation or
a native number is normalized first.
"""

from typing import Optional

from pydantic import Field, field_validator

from aori.contracts.base import AoriModel
from aori.utils.numbers import to_decimal_string, to_int


class TransactionRequest(AoriModel):
    """An unsigned transaction for the executor to send."""

    to: str = Field(..., description="Destination address (contract or recipient)")
    data: str = Field(default="0x", description="Calldata (hex encoded)")
    value: int = Field(default=0, description="Value in wei")
    gas_limit: Optional[int] = Field(None, description="Gas limit override")
    chain_id: Optional[int] = Field(None, description="Chain the transaction targets")

    @field_validator("value", mode="before")
    @classmethod
    def _normalize_value(cls, value) -> int:
        return to_int(value)

    @field_validator("gas_limit", mode="before")
    @classmethod
    def _normalize_gas(cls, value) -> Optional[int]:
        return None if value is None else to_int(value)


class TransactionReceipt(AoriModel):
    """Outcome of a mined transaction."""

    tx_hash: str
    status: int = Field(1, description="1 = success, 0 = reverted")
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class CancelTx(AoriModel):
    """Server-computed cancellation transaction.

    ``value`` is the cross-chain messaging fee in wei; "0" for orders that
    can be cancelled on a single chain.
    """

    order_hash: str
    chain: str
    to: str
    value: str = "0"
    data: str

    @field_validator("value", mode="before")
    @classmethod
    def _normalize_value(cls, value) -> str:
        return to_decimal_string(value if value not in (None, "") else 0)

    @property
    def fee_wei(self) -> int:
        return int(self.value)

    @property
    def is_cross_chain(self) -> bool:
        return self.fee_wei != 0


class CancelOrderResponse(AoriModel):
    """Result of a cancellation attempt."""

    success: bool
    tx_hash: str = ""
    is_cross_chain: bool = False
    fee: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
