"""Client configuration using pydantic-settings.

Every option can be set through an ``AORI_`` prefixed environment variable
(or a ``.env`` file) and overridden per instance in ``Aori.create``.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from aori.constants import AORI_API, AORI_WS_API


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AORI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Endpoints
    # ======================
    api_url: str = Field(default=AORI_API, description="Base HTTP URL of the Aori API")
    ws_url: str = Field(default=AORI_WS_API, description="Base WebSocket URL")
    api_key: Optional[str] = Field(default=None, description="Optional API key")

    # Path templates differ between API versions
    status_path: str = Field(
        default="/data/status/{order_hash}", description="Order status endpoint template"
    )
    cancel_path: str = Field(
        default="/cancel/{order_hash}", description="Cancellation data endpoint template"
    )
    stream_path: str = Field(default="/stream", description="WebSocket stream path")

    # ======================
    # Registry
    # ======================
    load_tokens: bool = Field(
        default=False, description="Eagerly load the full token list on create"
    )

    # ======================
    # Requests
    # ======================
    request_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")

    # ======================
    # Status tracking
    # ======================
    poll_interval: float = Field(default=0.15, description="Seconds between status checks")
    poll_timeout: float = Field(default=60.0, description="Seconds before polling gives up")
    stream_reconnect_delay: float = Field(
        default=1.0, description="Fixed delay before reconnecting the stream"
    )
    confirm_streamed_terminal: bool = Field(
        default=True,
        description="Confirm streamed terminal events with a direct status fetch",
    )

    # ======================
    # Signing / execution
    # ======================
    order_schema: str = Field(default="v0.3", description="Order typed-data schema (v0.3, legacy)")
    chain_switch_attempts: int = Field(default=20, description="Chain id checks after a switch")
    chain_switch_interval: float = Field(default=0.5, description="Seconds between chain id checks")
    gas_limit_buffer: float = Field(
        default=0.2, description="Fraction added on top of estimated gas (0.2 = 20%)"
    )

    @property
    def ws_base_url(self) -> str:
        """WebSocket URL with any http(s) scheme rewritten to ws(s)."""
        if self.ws_url.startswith("http"):
            return "ws" + self.ws_url[len("http"):]
        return self.ws_url

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        data = self.model_dump()
        data["api_key"] = "***" if self.api_key else "(not set)"
        return data


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
