"""Swap dispatcher: routes a quote down the native or ERC20 path.

ERC20 path:  quoted -> approving -> signing -> submitting -> submitted
Native path: quoted -> executing_native -> executed
Then, when tracking is requested: tracking -> completed | failed.
Any failure moves to ``error``; the outcome keeps the stage that failed and
whatever already happened on-chain (approval or deposit hashes).
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from aori.api import AoriApi
from aori.contracts import (
    OrderStatus,
    QuoteResponse,
    SwapRequest,
    SwapResponse,
)
from aori.errors import TransactionFailedError
from aori.execution.allowance import AllowanceManager
from aori.execution.base import (
    DEFAULT_CHAIN_SWITCH_ATTEMPTS,
    DEFAULT_CHAIN_SWITCH_INTERVAL,
    TransactionExecutor,
    ensure_chain,
)
from aori.registry import ChainRegistry
from aori.signing.base import TypedDataSigner
from aori.signing.order import OrderSchema, sign_readable_order
from aori.swap.native import construct_native_deposit_transaction, is_native_swap
from aori.tracking.poller import invoke_callback
from aori.tracking.tracker import OrderTracker

logger = logging.getLogger(__name__)


class SwapStage(str, Enum):
    """Swap state machine states."""
    IDLE = "idle"
    QUOTED = "quoted"
    APPROVING = "approving"
    SIGNING = "signing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    EXECUTING_NATIVE = "executing_native"
    EXECUTED = "executed"
    TRACKING = "tracking"
    COMPLETED = "completed"
    FAILED = "failed"
    ERROR = "error"


class SwapPath(str, Enum):
    NATIVE = "native"
    ERC20 = "erc20"


@dataclass
class NativeSwapConfig:
    """Native deposit path: the executor sends ``depositNative`` with value."""
    executor: TransactionExecutor
    gas_limit: Optional[int] = None


@dataclass
class Erc20SwapConfig:
    """ERC20 path: optional allowance check, then sign and submit.

    Attributes:
        signer: Typed-data signing capability
        user_address: Offerer address that signs the order
        allowance: Allowance manager; when set, the input chain's contract
            is approved for ``input_amount`` before signing
    """
    signer: TypedDataSigner
    user_address: str
    allowance: Optional[AllowanceManager] = None


SwapConfig = Union[NativeSwapConfig, Erc20SwapConfig]


@dataclass
class SwapOutcome:
    """Result of a swap attempt.

    ``stage`` is the last stage reached; on failure it is ``ERROR`` and
    ``failed_stage`` names where it happened.
    """
    success: bool
    path: SwapPath
    stage: SwapStage
    order_hash: str
    failed_stage: Optional[SwapStage] = None
    swap_response: Optional[SwapResponse] = None
    tx_hash: Optional[str] = None
    approval_tx_hash: Optional[str] = None
    final_status: Optional[OrderStatus] = None
    error: Optional[str] = None
    cause: Optional[BaseException] = None
    stages: list[SwapStage] = field(default_factory=list)

    @property
    def funds_moved(self) -> bool:
        """True if anything reached the chain before the outcome was decided."""
        return bool(self.approval_tx_hash or self.tx_hash)


class SwapDispatcher:
    """Executes quotes.

    Args:
        api: Client used for ``submit_swap``
        registry: Chain snapshot
        schema: Order struct layout used for signing and deposits
        tracker: Tracker used when ``track=True``
        chain_switch_attempts: Chain id checks after asking the native
            executor to switch to the input chain
        chain_switch_interval: Seconds between checks
    """

    def __init__(
        self,
        api: AoriApi,
        registry: ChainRegistry,
        schema: OrderSchema = OrderSchema.V0_3,
        tracker: Optional[OrderTracker] = None,
        chain_switch_attempts: int = DEFAULT_CHAIN_SWITCH_ATTEMPTS,
        chain_switch_interval: float = DEFAULT_CHAIN_SWITCH_INTERVAL,
    ):
        self.api = api
        self.registry = registry
        self.schema = schema
        self.tracker = tracker
        self.chain_switch_attempts = chain_switch_attempts
        self.chain_switch_interval = chain_switch_interval

        # Callback for stage updates
        self._on_stage_change: Optional[Callable[[str, SwapStage], Any]] = None

    def set_stage_callback(self, callback: Callable[[str, SwapStage], Any]) -> None:
        """Set callback for stage changes, called with (order_hash, stage)."""
        self._on_stage_change = callback

    async def _enter(self, outcome: SwapOutcome, stage: SwapStage) -> None:
        outcome.stage = stage
        outcome.stages.append(stage)
        logger.debug(f"Swap {outcome.order_hash}: {stage.value}")
        await invoke_callback(self._on_stage_change, outcome.order_hash, stage)

    async def execute_swap(
        self,
        quote: QuoteResponse,
        config: SwapConfig,
        track: bool = False,
    ) -> SwapOutcome:
        """Execute a quote.

        Args:
            quote: Quote to execute
            config: ``NativeSwapConfig`` for native quotes, ``Erc20SwapConfig`` otherwise
            track: Continue until the order reaches a terminal status

        Returns:
            SwapOutcome; failures are reported there, not raised
        """
        path = SwapPath.NATIVE if is_native_swap(quote) else SwapPath.ERC20
        outcome = SwapOutcome(
            success=False,
            path=path,
            stage=SwapStage.IDLE,
            order_hash=quote.order_hash,
        )
        await self._enter(outcome, SwapStage.QUOTED)

        expected = NativeSwapConfig if path is SwapPath.NATIVE else Erc20SwapConfig
        if not isinstance(config, expected):
            return await self._fail(
                outcome,
                TypeError(f"{path.value} quote requires {expected.__name__}, got {type(config).__name__}"),
            )

        try:
            if path is SwapPath.NATIVE:
                await self._execute_native(quote, config, outcome)
            else:
                await self._execute_erc20(quote, config, outcome)

            if track:
                await self._track(outcome)
            else:
                outcome.success = True
        except Exception as e:
            return await self._fail(outcome, e)

        return outcome

    async def _execute_native(
        self, quote: QuoteResponse, config: NativeSwapConfig, outcome: SwapOutcome
    ) -> None:
        await self._enter(outcome, SwapStage.EXECUTING_NATIVE)
        tx = construct_native_deposit_transaction(
            quote, self.registry, self.schema, gas_limit=config.gas_limit
        )
        await ensure_chain(
            config.executor, tx.chain_id, self.chain_switch_attempts, self.chain_switch_interval
        )
        outcome.tx_hash = await config.executor.send_transaction(tx)
        logger.info(f"Native deposit for {quote.order_hash} sent: {outcome.tx_hash}")

        receipt = await config.executor.wait_for_transaction(outcome.tx_hash)
        if not receipt.succeeded:
            raise TransactionFailedError(outcome.tx_hash)
        await self._enter(outcome, SwapStage.EXECUTED)

    async def _execute_erc20(
        self, quote: QuoteResponse, config: Erc20SwapConfig, outcome: SwapOutcome
    ) -> None:
        if config.allowance is not None:
            await self._enter(outcome, SwapStage.APPROVING)
            input_chain = self.registry.require_chain(quote.input_chain)
            outcome.approval_tx_hash = await config.allowance.ensure_allowance(
                quote.input_token,
                config.user_address,
                input_chain.contract_address,
                quote.input_amount,
                chain_id=input_chain.chain_id,
            )

        await self._enter(outcome, SwapStage.SIGNING)
        signed = await sign_readable_order(
            quote, config.signer, config.user_address, self.registry, self.schema
        )

        await self._enter(outcome, SwapStage.SUBMITTING)
        outcome.swap_response = await self.api.submit_swap(
            SwapRequest(order_hash=signed.order_hash, signature=signed.signature)
        )
        await self._enter(outcome, SwapStage.SUBMITTED)

    async def _track(self, outcome: SwapOutcome) -> None:
        if self.tracker is None:
            raise ValueError("Tracking requested but no tracker configured")

        await self._enter(outcome, SwapStage.TRACKING)
        status = await self.tracker.wait_for_terminal(outcome.order_hash)
        outcome.final_status = status
        outcome.success = status.is_completed
        if status.is_completed:
            await self._enter(outcome, SwapStage.COMPLETED)
        else:
            outcome.error = status.error or f"Order ended with status {status.status}"
            await self._enter(outcome, SwapStage.FAILED)

    async def _fail(self, outcome: SwapOutcome, error: Exception) -> SwapOutcome:
        outcome.success = False
        outcome.failed_stage = outcome.stage
        outcome.error = str(error)
        outcome.cause = error
        logger.error(
            f"Swap {outcome.order_hash} failed during {outcome.failed_stage.value}: {error}"
        )
        await self._enter(outcome, SwapStage.ERROR)
        return outcome
