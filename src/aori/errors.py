"""Exception hierarchy for the Aori client.

Every failure raised by this package derives from AoriError. Errors wrap the
underlying cause (chained with ``raise ... from``) and carry enough context
(endpoint, order hash, chain) to debug without a stack trace.
"""

from typing import Optional


class AoriError(Exception):
    """Base class for all Aori client errors."""

    pass


class NetworkError(AoriError):
    """Transport failure (DNS, TLS, connection reset, timeout).

    Always retryable at the caller's discretion.
    """

    def __init__(self, message: str, endpoint: Optional[str] = None):
        super().__init__(message)
        self.endpoint = endpoint


class ApiError(AoriError):
    """Non-2xx or unreadable response from the Aori API.

    Attributes:
        status_code: HTTP status code
        endpoint: Request path that failed
        server_message: Response body as returned by the server
    """

    def __init__(self, message: str, status_code: int, endpoint: str, server_message: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint
        self.server_message = server_message


class QuoteError(AoriError):
    """Quote request failed (network or API). Quotes are never retried."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UnknownChainError(AoriError):
    """Chain key is not present in the registry snapshot."""

    def __init__(self, chain: str, available: list[str]):
        super().__init__(
            f"Chain '{chain}' not found in cached chains. "
            f"Available chains: {', '.join(available) or '(none)'}"
        )
        self.chain = chain
        self.available = available


class UnsupportedChainError(AoriError):
    """The API asked for a chain this client cannot resolve."""

    def __init__(self, chain: str):
        super().__init__(f"Unsupported chain: {chain}")
        self.chain = chain


class SigningError(AoriError):
    """Typed-data signing failed (wallet rejection or malformed data)."""

    pass


class PollTimeoutError(AoriError):
    """Order status polling exceeded its timeout. The caller may poll again."""

    def __init__(self, order_hash: str, timeout: float, last_status: Optional[str] = None):
        super().__init__(
            f"Order status polling timed out after {timeout}s "
            f"(order {order_hash}, last status: {last_status or 'unknown'})"
        )
        self.order_hash = order_hash
        self.timeout = timeout
        self.last_status = last_status


class ChainSwitchTimeoutError(AoriError):
    """Executor did not report the required chain within the attempt budget."""

    def __init__(self, current_chain_id: Optional[int], required_chain_id: int):
        super().__init__(
            f"Chain switch timeout: wallet still on chain {current_chain_id}, "
            f"expected {required_chain_id}"
        )
        self.current_chain_id = current_chain_id
        self.required_chain_id = required_chain_id


class TransactionFailedError(AoriError):
    """A dispatched transaction was mined but reverted."""

    def __init__(self, tx_hash: str, message: Optional[str] = None):
        super().__init__(message or f"Transaction {tx_hash} failed (reverted)")
        self.tx_hash = tx_hash


class StreamError(AoriError):
    """WebSocket stream could not be established."""

    pass
