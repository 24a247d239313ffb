"""Python client for the Aori cross-chain order protocol."""

from aori.api import AoriApi
from aori.cancellation import CancellationEngine
from aori.config import Settings, get_settings
from aori.constants import NATIVE_TOKEN_ADDRESS, is_native_token, is_terminal_status
from aori.core import Aori
from aori.errors import (
    AoriError,
    ApiError,
    ChainSwitchTimeoutError,
    NetworkError,
    PollTimeoutError,
    QuoteError,
    SigningError,
    StreamError,
    TransactionFailedError,
    UnknownChainError,
    UnsupportedChainError,
)
from aori.execution import Erc20Allowance, TransactionExecutor, Web3TransactionExecutor
from aori.registry import ChainRegistry
from aori.signing import LocalTypedDataSigner, OrderSchema, TypedDataSigner, sign_order
from aori.swap import (
    Erc20SwapConfig,
    NativeSwapConfig,
    SwapOutcome,
    SwapStage,
    construct_native_deposit_transaction,
    is_native_swap,
    validate_deposit_native_calldata,
)
from aori.tracking import OrderStream, OrderTracker, StreamCallbacks, poll_order_status

__version__ = "0.1.0"

__all__ = [
    "Aori",
    "AoriApi",
    "CancellationEngine",
    "ChainRegistry",
    "Settings",
    "get_settings",
    # Constants
    "NATIVE_TOKEN_ADDRESS",
    "is_native_token",
    "is_terminal_status",
    # Errors
    "AoriError",
    "ApiError",
    "ChainSwitchTimeoutError",
    "NetworkError",
    "PollTimeoutError",
    "QuoteError",
    "SigningError",
    "StreamError",
    "TransactionFailedError",
    "UnknownChainError",
    "UnsupportedChainError",
    # Capabilities
    "TypedDataSigner",
    "LocalTypedDataSigner",
    "TransactionExecutor",
    "Web3TransactionExecutor",
    "Erc20Allowance",
    # Orders and swaps
    "OrderSchema",
    "sign_order",
    "SwapOutcome",
    "SwapStage",
    "NativeSwapConfig",
    "Erc20SwapConfig",
    "construct_native_deposit_transaction",
    "is_native_swap",
    "validate_deposit_native_calldata",
    # Tracking
    "OrderStream",
    "OrderTracker",
    "StreamCallbacks",
    "poll_order_status",
]
