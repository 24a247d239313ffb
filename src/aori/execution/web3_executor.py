"""web3.py backed transaction executor.

Signs locally with an eth-account key and broadcasts over per-chain RPC
endpoints. Switching chains swaps the active provider.
"""

import asyncio
import logging
from typing import Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import TimeExhausted

from aori.contracts import TransactionReceipt, TransactionRequest
from aori.errors import NetworkError, UnsupportedChainError
from aori.execution.base import TransactionExecutor

logger = logging.getLogger(__name__)


class Web3TransactionExecutor(TransactionExecutor):
    """Executor over ``AsyncWeb3`` with a chain id -> RPC URL map.

    Args:
        account: Local account used to sign
        rpc_urls: RPC endpoint per chain id
        chain_id: Initial chain; defaults to the first entry of ``rpc_urls``
        receipt_timeout: Seconds to wait for a receipt
    """

    def __init__(
        self,
        account: LocalAccount,
        rpc_urls: dict[int, str],
        chain_id: Optional[int] = None,
        receipt_timeout: float = 120.0,
    ):
        if not rpc_urls:
            raise ValueError("At least one RPC URL is required")
        self._account = account
        self.rpc_urls = dict(rpc_urls)
        self.receipt_timeout = receipt_timeout
        self._chain_id = chain_id if chain_id is not None else next(iter(self.rpc_urls))
        if self._chain_id not in self.rpc_urls:
            raise UnsupportedChainError(str(self._chain_id))
        self._web3s: dict[int, AsyncWeb3] = {}
        # Sends from one account must not race for the same nonce
        self._send_lock = asyncio.Lock()

    @classmethod
    def from_key(cls, private_key: str, rpc_urls: dict[int, str], **kwargs) -> "Web3TransactionExecutor":
        return cls(Account.from_key(private_key), rpc_urls, **kwargs)

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def web3(self) -> AsyncWeb3:
        """Lazy load the web3 instance for the active chain."""
        if self._chain_id not in self._web3s:
            self._web3s[self._chain_id] = AsyncWeb3(AsyncHTTPProvider(self.rpc_urls[self._chain_id]))
        return self._web3s[self._chain_id]

    def _to_params(self, tx: TransactionRequest) -> dict:
        params = {
            "from": self.address,
            "to": AsyncWeb3.to_checksum_address(tx.to),
            "data": tx.data,
            "value": tx.value,
        }
        if tx.gas_limit is not None:
            params["gas"] = tx.gas_limit
        return params

    async def get_chain_id(self) -> int:
        return self._chain_id

    async def switch_chain(self, chain_id: int) -> None:
        if chain_id not in self.rpc_urls:
            raise UnsupportedChainError(str(chain_id))
        logger.info(f"Switching executor from chain {self._chain_id} to {chain_id}")
        self._chain_id = chain_id

    async def estimate_gas(self, tx: TransactionRequest) -> int:
        try:
            return await self.web3.eth.estimate_gas(self._to_params(tx))
        except (OSError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Gas estimation failed: {e}", endpoint=self.rpc_urls[self._chain_id]) from e

    async def call(self, tx: TransactionRequest) -> str:
        try:
            result = await self.web3.eth.call(self._to_params(tx))
        except (OSError, asyncio.TimeoutError) as e:
            raise NetworkError(f"eth_call failed: {e}", endpoint=self.rpc_urls[self._chain_id]) from e
        return "0x" + bytes(result).hex()

    async def send_transaction(self, tx: TransactionRequest) -> str:
        """Sign and send a transaction from the local account."""
        if tx.chain_id is not None and tx.chain_id != self._chain_id:
            await self.switch_chain(tx.chain_id)

        web3 = self.web3
        params = self._to_params(tx)

        async with self._send_lock:
            try:
                params["chainId"] = self._chain_id
                params["nonce"] = await web3.eth.get_transaction_count(self.address, "pending")
                if "gas" not in params:
                    params["gas"] = await web3.eth.estimate_gas(params)
                if "gasPrice" not in params and "maxFeePerGas" not in params:
                    params["gasPrice"] = await web3.eth.gas_price

                signed_tx = self._account.sign_transaction(params)
                tx_hash = await web3.eth.send_raw_transaction(signed_tx.raw_transaction)
            except (OSError, asyncio.TimeoutError) as e:
                raise NetworkError(
                    f"Failed to send transaction: {e}", endpoint=self.rpc_urls[self._chain_id]
                ) from e

        tx_hash_hex = "0x" + bytes(tx_hash).hex()
        logger.info(f"Sent transaction {tx_hash_hex} on chain {self._chain_id}")
        return tx_hash_hex

    async def wait_for_transaction(
        self, tx_hash: str, timeout: Optional[float] = None
    ) -> TransactionReceipt:
        """Wait for the transaction receipt."""
        try:
            receipt = await self.web3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=timeout or self.receipt_timeout
            )
        except TimeExhausted as e:
            raise NetworkError(f"Transaction {tx_hash} not mined in time", endpoint=tx_hash) from e

        return TransactionReceipt(
            tx_hash=tx_hash,
            status=receipt["status"],
            block_number=receipt.get("blockNumber"),
            gas_used=receipt.get("gasUsed"),
        )
