"""Order status, details, query and stream event contracts."""

import re
from enum import Enum
from typing import Any, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from aori.constants import FAILED_STATUSES, STATUS_COMPLETED, TERMINAL_STATUSES
from aori.contracts.base import AoriModel

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

_STATUS_ALIASES = {
    "canceled": "cancelled",
    "srcfailed": "src_failed",
}


def normalize_status(value: Any) -> str:
    """Map any server status representation to a canonical lowercase string.

    Accepts ``"completed"``, ``"Completed"``, ``"SrcFailed"`` and the
    structured ``{"type": "Completed"}`` form.
    """
    if isinstance(value, dict):
        return normalize_status(value.get("status") or value.get("type") or "")
    text = _CAMEL_BOUNDARY.sub("_", str(value).strip()).lower().replace("-", "_")
    return _STATUS_ALIASES.get(text, text)


class OrderStatus(AoriModel):
    """Current status of an order.

    Unknown fields from the server are kept (``extra="allow"``) so full order
    records returned by some API versions are not lost.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    status: str
    order_hash: Optional[str] = None
    tx_hash: Optional[str] = None
    tx_url: Optional[str] = None
    error: Optional[str] = None
    timestamp: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_status(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"status": normalize_status(data)}
        if isinstance(data, dict):
            data = dict(data)
            data["status"] = normalize_status(data)
            data.pop("type", None)
        return data

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.status in FAILED_STATUSES


class OrderEvent(AoriModel):
    """A lifecycle event in an order's history."""

    event_type: str
    timestamp: int

    @field_validator("event_type", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> str:
        return normalize_status(value)


class OrderDetails(AoriModel):
    """Detailed order record including its event history."""

    order_hash: str
    offerer: str
    recipient: str
    input_token: str
    input_amount: str
    input_chain: str
    input_token_value_usd: Optional[str] = None
    output_token: str
    output_amount: str
    output_chain: str
    output_token_value_usd: Optional[str] = None
    start_time: int
    end_time: int
    src_tx: Optional[str] = None
    dst_tx: Optional[str] = None
    timestamp: Optional[int] = None
    events: list[OrderEvent] = Field(default_factory=list)

    @property
    def latest_event(self) -> Optional[OrderEvent]:
        if not self.events:
            return None
        return max(self.events, key=lambda e: e.timestamp)


class QueryOrdersParams(AoriModel):
    """Filter parameters for ``GET /data/query``."""

    order_hash: Optional[str] = None
    offerer: Optional[str] = None
    recipient: Optional[str] = None
    input_token: Optional[str] = None
    input_chain: Optional[str] = None
    output_token: Optional[str] = None
    output_chain: Optional[str] = None
    min_value: Optional[str] = None
    max_value: Optional[str] = None
    src_tx: Optional[str] = None
    dst_tx: Optional[str] = None
    status: Optional[str] = None
    min_time: Optional[int] = None
    max_time: Optional[int] = None
    page: Optional[int] = Field(None, ge=1)
    limit: Optional[int] = Field(None, ge=1)

    def to_query(self) -> dict[str, str]:
        """Query string parameters with unset filters dropped."""
        return {key: str(value) for key, value in self.to_payload().items()}


class OrderQueryResult(AoriModel):
    """Single row of an order query."""

    order_hash: str
    offerer: str
    recipient: str
    input_token: str
    input_amount: str
    input_chain: str
    input_token_value_usd: Optional[str] = None
    output_token: str
    output_amount: str
    output_chain: str
    output_token_value_usd: Optional[str] = None
    start_time: int
    end_time: int
    src_tx: Optional[str] = None
    dst_tx: Optional[str] = None
    timestamp: Optional[int] = None
    status: str

    @field_validator("status", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> str:
        return normalize_status(value)


class PaginationMetadata(AoriModel):
    current_page: int = 1
    limit: int = 0
    total_records: int = 0
    total_pages: int = 0


class QueryOrdersResponse(AoriModel):
    """Paginated order query results."""

    orders: list[OrderQueryResult] = Field(default_factory=list)
    pagination: PaginationMetadata = Field(default_factory=PaginationMetadata)

    @classmethod
    def empty(cls, params: Optional[QueryOrdersParams] = None) -> "QueryOrdersResponse":
        page = params.page if params and params.page else 1
        limit = params.limit if params and params.limit else 0
        return cls(pagination=PaginationMetadata(current_page=page, limit=limit))


class SubscriptionParams(AoriModel):
    """Filters for the WebSocket event stream, sent as query parameters."""

    order_hash: Optional[str] = None
    offerer: Optional[str] = None
    recipient: Optional[str] = None
    input_token: Optional[str] = None
    input_chain: Optional[str] = None
    output_token: Optional[str] = None
    output_chain: Optional[str] = None
    event_type: Optional[str] = None

    def to_query(self) -> dict[str, str]:
        return {key: str(value) for key, value in self.to_payload().items() if value}


class WSEventType(str, Enum):
    CREATED = "created"
    RECEIVED = "received"
    COMPLETED = "completed"
    FAILED = "failed"


class WSOrder(AoriModel):
    """Order payload carried by a stream event."""

    order_hash: str
    offerer: Optional[str] = None
    recipient: Optional[str] = None
    input_token: Optional[str] = None
    input_amount: Optional[str] = None
    input_chain: Optional[str] = None
    output_token: Optional[str] = None
    output_amount: Optional[str] = None
    output_chain: Optional[str] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    src_tx: Optional[str] = None
    dst_tx: Optional[str] = None


class WSEvent(AoriModel):
    """A single event pushed by the stream.

    ``event_type`` is kept as a normalized string since the server may add
    event types; compare against ``WSEventType`` values.
    """

    event_type: str
    timestamp: Optional[int] = None
    order: WSOrder

    @field_validator("event_type", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> str:
        return normalize_status(value)

    @property
    def order_hash(self) -> str:
        return self.order.order_hash

    @property
    def is_terminal(self) -> bool:
        return self.event_type in TERMINAL_STATUSES
