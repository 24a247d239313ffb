"""Wire contracts for the Aori API.

All models use snake_case attributes and serialize to the API's camelCase
field names.
"""

from aori.contracts.base import AoriModel
from aori.contracts.chains import ChainInfo, TokenInfo
from aori.contracts.orders import (
    OrderDetails,
    OrderEvent,
    OrderQueryResult,
    OrderStatus,
    PaginationMetadata,
    QueryOrdersParams,
    QueryOrdersResponse,
    SubscriptionParams,
    WSEvent,
    WSEventType,
    WSOrder,
    normalize_status,
)
from aori.contracts.quotes import QuoteRequest, QuoteResponse
from aori.contracts.swaps import SwapRequest, SwapResponse
from aori.contracts.transactions import (
    CancelOrderResponse,
    CancelTx,
    TransactionReceipt,
    TransactionRequest,
)

__all__ = [
    "AoriModel",
    # Registry
    "ChainInfo",
    "TokenInfo",
    # Quotes and swaps
    "QuoteRequest",
    "QuoteResponse",
    "SwapRequest",
    "SwapResponse",
    # Orders
    "OrderStatus",
    "OrderEvent",
    "OrderDetails",
    "OrderQueryResult",
    "PaginationMetadata",
    "QueryOrdersParams",
    "QueryOrdersResponse",
    "normalize_status",
    # Stream
    "SubscriptionParams",
    "WSEvent",
    "WSEventType",
    "WSOrder",
    # Transactions
    "TransactionRequest",
    "TransactionReceipt",
    "CancelTx",
    "CancelOrderResponse",
]
