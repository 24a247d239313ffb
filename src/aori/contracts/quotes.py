"""Quote request and response contracts."""

from typing import Optional

from pydantic import Field, field_validator

from aori.constants import is_native_token
from aori.contracts.base import AoriModel
from aori.utils.numbers import to_decimal_string, to_int


class QuoteRequest(AoriModel):
    """Request for a swap quote.

    ``input_amount`` is expressed in the input token's smallest unit and may
    be given as int, Decimal, float, decimal/scientific/hex string. It is
    always transmitted as a plain base-10 integer string.
    """

    offerer: str = Field(..., description="Address offering the input token")
    recipient: str = Field(..., description="Address receiving the output token")
    input_token: str = Field(..., description="Input token address")
    output_token: str = Field(..., description="Output token address")
    input_amount: str = Field(..., description="Input amount in smallest units")
    input_chain: str = Field(..., description="Input chain key")
    output_chain: str = Field(..., description="Output chain key")

    @field_validator("input_amount", mode="before")
    @classmethod
    def _normalize_amount(cls, value) -> str:
        return to_decimal_string(value)


class QuoteResponse(AoriModel):
    """Priced quote returned by the API.

    ``order_hash`` is computed server-side and must be echoed unchanged when
    the order is submitted or cancelled.
    """

    order_hash: str
    signing_hash: Optional[str] = None
    offerer: str
    recipient: str
    input_token: str
    output_token: str
    input_amount: str
    output_amount: str
    input_chain: str
    output_chain: str
    start_time: int
    end_time: int
    estimated_time: Optional[float] = None
    exclusive_solver: Optional[str] = None
    exclusive_solver_duration: Optional[int] = None

    @field_validator("input_amount", "output_amount", mode="before")
    @classmethod
    def _normalize_amounts(cls, value) -> str:
        return to_decimal_string(value)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _normalize_times(cls, value) -> int:
        return to_int(value)

    @property
    def is_native(self) -> bool:
        """True if the input asset is the chain's native coin."""
        return is_native_token(self.input_token)

    @property
    def is_cross_chain(self) -> bool:
        return self.input_chain.lower() != self.output_chain.lower()
