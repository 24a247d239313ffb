"""ERC20 allowance checks and approvals.

Works entirely through a ``TransactionExecutor``: reads use ``call``,
approvals use ``send_transaction``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from aori.constants import ERC20_ALLOWANCE_SELECTOR, ERC20_APPROVE_SELECTOR, MAX_UINT256
from aori.contracts import TransactionRequest
from aori.errors import TransactionFailedError
from aori.execution.base import (
    DEFAULT_CHAIN_SWITCH_ATTEMPTS,
    DEFAULT_CHAIN_SWITCH_INTERVAL,
    TransactionExecutor,
    ensure_chain,
)
from aori.utils.numbers import AmountLike, to_int

logger = logging.getLogger(__name__)


def _pad_address(address: str) -> str:
    return address.lower().replace("0x", "").zfill(64)


def _pad_uint(value: int) -> str:
    return hex(value)[2:].zfill(64)


def build_allowance_call(token: str, owner: str, spender: str, chain_id: Optional[int] = None) -> TransactionRequest:
    """Calldata for ``allowance(owner, spender)``."""
    data = f"{ERC20_ALLOWANCE_SELECTOR}{_pad_address(owner)}{_pad_address(spender)}"
    return TransactionRequest(to=token, data=data, chain_id=chain_id)


def build_approval(
    token: str, spender: str, amount: Optional[int] = None, chain_id: Optional[int] = None
) -> TransactionRequest:
    """Transaction for ``approve(spender, amount)``. None approves unlimited."""
    if amount is None:
        amount = MAX_UINT256
    data = f"{ERC20_APPROVE_SELECTOR}{_pad_address(spender)}{_pad_uint(amount)}"
    return TransactionRequest(to=token, data=data, value=0, chain_id=chain_id)


class AllowanceManager(ABC):
    """Capability: make sure a spender may move the caller's tokens."""

    @abstractmethod
    async def get_allowance(
        self, token: str, owner: str, spender: str, chain_id: Optional[int] = None
    ) -> int:
        pass

    @abstractmethod
    async def approve(
        self,
        token: str,
        spender: str,
        amount: Optional[int] = None,
        chain_id: Optional[int] = None,
    ) -> str:
        """Approve ``spender`` and wait for it to be mined. Returns the tx hash."""
        pass

    async def ensure_allowance(
        self,
        token: str,
        owner: str,
        spender: str,
        amount: AmountLike,
        chain_id: Optional[int] = None,
    ) -> Optional[str]:
        """Approve if the current allowance is below ``amount``.

        ``chain_id`` is the chain the token lives on; when given, both the
        read and the approval happen there.

        Returns:
            Approval tx hash, or None if the allowance was already sufficient
        """
        required = to_int(amount)
        current = await self.get_allowance(token, owner, spender, chain_id)
        if current >= required:
            logger.debug(f"Allowance for {spender} on {token} sufficient ({current} >= {required})")
            return None

        logger.info(f"Allowance for {spender} on {token} is {current}, approving {required}")
        return await self.approve(token, spender, required, chain_id)


class Erc20Allowance(AllowanceManager):
    """Allowance manager over a transaction executor.

    Args:
        executor: Executor used for calls and approval transactions
        unlimited: Approve MAX_UINT256 instead of the exact amount
        chain_switch_attempts: Chain id checks after requesting a switch
        chain_switch_interval: Seconds between checks
    """

    def __init__(
        self,
        executor: TransactionExecutor,
        unlimited: bool = False,
        chain_switch_attempts: int = DEFAULT_CHAIN_SWITCH_ATTEMPTS,
        chain_switch_interval: float = DEFAULT_CHAIN_SWITCH_INTERVAL,
    ):
        self.executor = executor
        self.unlimited = unlimited
        self.chain_switch_attempts = chain_switch_attempts
        self.chain_switch_interval = chain_switch_interval

    async def _use_chain(self, chain_id: Optional[int]) -> None:
        if chain_id is not None:
            await ensure_chain(
                self.executor, chain_id, self.chain_switch_attempts, self.chain_switch_interval
            )

    async def get_allowance(
        self, token: str, owner: str, spender: str, chain_id: Optional[int] = None
    ) -> int:
        await self._use_chain(chain_id)
        result = await self.executor.call(build_allowance_call(token, owner, spender, chain_id))
        if not result or result == "0x":
            return 0
        return int(result, 16)

    async def approve(
        self,
        token: str,
        spender: str,
        amount: Optional[int] = None,
        chain_id: Optional[int] = None,
    ) -> str:
        await self._use_chain(chain_id)
        approval = build_approval(token, spender, None if self.unlimited else amount, chain_id)
        tx_hash = await self.executor.send_transaction(approval)
        receipt = await self.executor.wait_for_transaction(tx_hash)
        if not receipt.succeeded:
            raise TransactionFailedError(tx_hash, f"Approval {tx_hash} reverted")
        logger.info(f"Approved {spender} on {token}: {tx_hash}")
        return tx_hash
