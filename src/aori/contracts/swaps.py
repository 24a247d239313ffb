"""Swap submission contracts."""

from typing import Any, Optional

from pydantic import field_validator

from aori.contracts.base import AoriModel
from aori.contracts.orders import normalize_status


class SwapRequest(AoriModel):
    """Signed order submission."""

    order_hash: str
    signature: str


class SwapResponse(AoriModel):
    """Order echo returned after a successful submission."""

    order_hash: str
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
    status: str
    created_at: Optional[int] = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> str:
        return normalize_status(value)
