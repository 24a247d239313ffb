"""Swap execution: native deposits and signed ERC20 orders."""

from aori.swap.dispatcher import (
    Erc20SwapConfig,
    NativeSwapConfig,
    SwapDispatcher,
    SwapOutcome,
    SwapPath,
    SwapStage,
)
from aori.swap.native import (
    construct_native_deposit_transaction,
    is_native_swap,
    validate_deposit_native_calldata,
)

__all__ = [
    "SwapDispatcher",
    "SwapOutcome",
    "SwapPath",
    "SwapStage",
    "NativeSwapConfig",
    "Erc20SwapConfig",
    "construct_native_deposit_transaction",
    "is_native_swap",
    "validate_deposit_native_calldata",
]
