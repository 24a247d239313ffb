"""Protocol constants: endpoints, sentinel addresses, status vocabulary."""

# ======================
# Endpoints
# ======================
AORI_API = "https://api.aori.io"
AORI_WS_API = "wss://api.aori.io"

# ======================
# Native asset
# ======================
# Sentinel used by the API for the chain's native coin (ETH on most chains)
NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# ======================
# Order status vocabulary
# ======================
STATUS_PENDING = "pending"
STATUS_RECEIVED = "received"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"
STATUS_SRC_FAILED = "src_failed"
STATUS_CANCELLED = "cancelled"

TERMINAL_STATUSES = frozenset(
    {STATUS_COMPLETED, STATUS_FAILED, STATUS_SRC_FAILED, STATUS_CANCELLED}
)
FAILED_STATUSES = frozenset({STATUS_FAILED, STATUS_SRC_FAILED})

# ======================
# Token decimals fallback
# ======================
# Used when the token list does not carry decimals
TOKEN_DECIMALS = {
    "USDC": 6,
    "USDT": 6,
    "WETH": 18,
    "ETH": 18,
    "WBTC": 8,
}
DEFAULT_TOKEN_DECIMALS = 18

# ======================
# Function selectors
# ======================
ERC20_ALLOWANCE_SELECTOR = "0xdd62ed3e"  # allowance(address,address)
ERC20_APPROVE_SELECTOR = "0x095ea7b3"  # approve(address,uint256)

MAX_UINT256 = 2**256 - 1


def is_terminal_status(status: str) -> bool:
    """Check if an order status is terminal."""
    return status.lower() in TERMINAL_STATUSES


def is_native_token(address: str) -> bool:
    """Check if a token address is the native asset sentinel."""
    return bool(address) and address.lower() == NATIVE_TOKEN_ADDRESS.lower()
