"""Order cancellation.

Flow:
1. Fetch the server-computed cancel transaction (always fresh, never cached)
2. Resolve the chain it must be sent on
3. Switch the executor to that chain and wait until it reports it
4. Send with ``value`` = cross-chain fee ("0" for single-chain cancels)
5. Wait for the receipt

Failures come back as ``CancelOrderResponse(success=False)`` carrying the
original error text and the exception class name.
"""

import logging
from typing import Optional

from aori.api import AoriApi
from aori.contracts import CancelOrderResponse, CancelTx, TransactionRequest
from aori.errors import TransactionFailedError, UnsupportedChainError
from aori.execution.base import TransactionExecutor, ensure_chain
from aori.registry import ChainRegistry
from aori.utils.numbers import to_int

logger = logging.getLogger(__name__)


class CancellationEngine:
    """Cancels orders through a transaction executor.

    Args:
        api: Client with ``get_cancel_tx`` (usually ``AoriApi``)
        registry: Chain snapshot used to resolve the cancel chain
        chain_switch_attempts: Chain id checks after requesting a switch
        chain_switch_interval: Seconds between checks
        gas_limit_buffer: Fraction added to estimated gas; None skips estimation
    """

    def __init__(
        self,
        api: AoriApi,
        registry: ChainRegistry,
        chain_switch_attempts: int = 20,
        chain_switch_interval: float = 0.5,
        gas_limit_buffer: Optional[float] = 0.2,
    ):
        self.api = api
        self.registry = registry
        self.chain_switch_attempts = chain_switch_attempts
        self.chain_switch_interval = chain_switch_interval
        self.gas_limit_buffer = gas_limit_buffer

    async def cancel_order(
        self, order_hash: str, executor: TransactionExecutor
    ) -> CancelOrderResponse:
        """Cancel an order. Never raises for expected failures."""
        try:
            cancel_tx = await self.api.get_cancel_tx(order_hash)
        except Exception as e:
            message = getattr(e, "server_message", "") or str(e)
            if not message.startswith("Failed to get cancel data"):
                message = f"Failed to get cancel data: {message}"
            logger.error(f"Cancel {order_hash}: {message}")
            return CancelOrderResponse(success=False, error=message, error_type=type(e).__name__)

        try:
            return await self._execute(cancel_tx, executor)
        except Exception as e:
            logger.error(f"Cancel {order_hash} failed: {e}")
            return CancelOrderResponse(
                success=False,
                is_cross_chain=cancel_tx.is_cross_chain,
                fee=cancel_tx.value,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def _execute(
        self, cancel_tx: CancelTx, executor: TransactionExecutor
    ) -> CancelOrderResponse:
        chain = self.registry.get_chain(cancel_tx.chain)
        if chain is None:
            raise UnsupportedChainError(cancel_tx.chain)

        await ensure_chain(
            executor, chain.chain_id, self.chain_switch_attempts, self.chain_switch_interval
        )

        tx = TransactionRequest(
            to=cancel_tx.to,
            data=cancel_tx.data,
            value=to_int(cancel_tx.value),
            chain_id=chain.chain_id,
        )
        if self.gas_limit_buffer is not None:
            estimated = await executor.estimate_gas(tx)
            tx.gas_limit = int(estimated * (1 + self.gas_limit_buffer))

        kind = "cross-chain" if cancel_tx.is_cross_chain else "single-chain"
        logger.info(
            f"Cancelling {cancel_tx.order_hash} on {chain.chain_key} ({kind}, fee {cancel_tx.value} wei)"
        )
        tx_hash = await executor.send_transaction(tx)
        receipt = await executor.wait_for_transaction(tx_hash)
        if not receipt.succeeded:
            raise TransactionFailedError(tx_hash, f"Cancel transaction {tx_hash} reverted")

        logger.info(f"Cancelled {cancel_tx.order_hash}: {tx_hash}")
        return CancelOrderResponse(
            success=True,
            tx_hash=tx_hash,
            is_cross_chain=cancel_tx.is_cross_chain,
            fee=cancel_tx.value,
        )

