"""Chain and token metadata contracts."""

from typing import Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from aori.contracts.base import AoriModel


class ChainInfo(AoriModel):
    """A supported chain and its Aori deployment.

    ``contract_address`` is both the deposit contract and the EIP-712
    verifying contract for orders originating on this chain.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    chain_key: str = Field(..., description="Unique lowercase chain key (e.g. base)")
    chain_id: int = Field(..., description="EVM chain ID")
    endpoint_id: int = Field(..., alias="eid", description="Cross-chain messaging endpoint ID")
    contract_address: str = Field(..., alias="address", description="Aori contract address")
    block_time: Optional[float] = Field(
        None, alias="blocktime", description="Average block time in seconds"
    )

    @field_validator("chain_key")
    @classmethod
    def _lowercase_key(cls, value: str) -> str:
        return value.lower()


class TokenInfo(AoriModel):
    """A token supported on a chain."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    address: str
    chain_key: str
    chain_id: Optional[int] = None
    symbol: str = ""
    decimals: Optional[int] = None

    @field_validator("chain_key")
    @classmethod
    def _lowercase_key(cls, value: str) -> str:
        return value.lower()
