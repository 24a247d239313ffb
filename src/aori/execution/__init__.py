"""Transaction execution capability and implementations."""

from aori.execution.allowance import (
    AllowanceManager,
    Erc20Allowance,
    build_allowance_call,
    build_approval,
)
from aori.execution.base import TransactionExecutor, ensure_chain
from aori.execution.web3_executor import Web3TransactionExecutor

__all__ = [
    "TransactionExecutor",
    "ensure_chain",
    "Web3TransactionExecutor",
    "AllowanceManager",
    "Erc20Allowance",
    "build_allowance_call",
    "build_approval",
]
