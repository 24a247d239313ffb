"""Transaction execution capability.

The engine never holds keys or RPC connections of its own. Anything that
goes on-chain (native deposits, approvals, cancellations) is handed to a
``TransactionExecutor`` supplied by the caller.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from aori.contracts import TransactionReceipt, TransactionRequest
from aori.errors import ChainSwitchTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_CHAIN_SWITCH_ATTEMPTS = 20
DEFAULT_CHAIN_SWITCH_INTERVAL = 0.5


class TransactionExecutor(ABC):
    """Capability: send transactions and observe their outcome."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Account the executor sends from."""
        pass

    @abstractmethod
    async def send_transaction(self, tx: TransactionRequest) -> str:
        """Sign and broadcast a transaction.

        Returns:
            Transaction hash
        """
        pass

    @abstractmethod
    async def wait_for_transaction(
        self, tx_hash: str, timeout: Optional[float] = None
    ) -> TransactionReceipt:
        """Wait until the transaction is mined and return its receipt."""
        pass

    @abstractmethod
    async def estimate_gas(self, tx: TransactionRequest) -> int:
        pass

    @abstractmethod
    async def get_chain_id(self) -> int:
        """Chain the executor is currently connected to."""
        pass

    async def call(self, tx: TransactionRequest) -> str:
        """Read-only contract call returning hex-encoded return data.

        Optional capability; executors that cannot call raise NotImplementedError.
        """
        raise NotImplementedError(f"{self.__class__.__name__} does not support call()")

    async def switch_chain(self, chain_id: int) -> None:
        """Ask the executor to move to another chain.

        Optional capability. The switch may complete asynchronously, so callers
        confirm it with ``get_chain_id``.
        """
        raise NotImplementedError(f"{self.__class__.__name__} cannot switch chains")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(address={self.address})"


async def ensure_chain(
    executor: TransactionExecutor,
    chain_id: int,
    attempts: int = DEFAULT_CHAIN_SWITCH_ATTEMPTS,
    interval: float = DEFAULT_CHAIN_SWITCH_INTERVAL,
) -> None:
    """Make sure ``executor`` is on ``chain_id``, switching if needed.

    After requesting a switch the chain id is checked up to ``attempts``
    times, ``interval`` seconds apart.

    Raises:
        ChainSwitchTimeoutError: if the executor never reports the chain
    """
    current = await executor.get_chain_id()
    if current == chain_id:
        return

    logger.info(f"Switching executor from chain {current} to {chain_id}")
    await executor.switch_chain(chain_id)

    for attempt in range(attempts):
        current = await executor.get_chain_id()
        if current == chain_id:
            return
        if attempt < attempts - 1:
            await asyncio.sleep(interval)

    raise ChainSwitchTimeoutError(current, chain_id)
