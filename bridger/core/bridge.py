"""End-to-end L1 to L2 deposit orchestration."""

from __future__ import annotations

import threading
from contextlib import ExitStack
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, ContextManager, Optional, Union

from web3 import Web3

from bridger.config import BridgeConfig, BridgeDefaults
from bridger.core.amounts import resolve_amount
from bridger.core.balances import Asset, Balance, Erc20Token, NativeAsset, read_balance
from bridger.core.chain import ChainClient, open_chain
from bridger.core.confirmation import BalanceIncreased, await_delta
from bridger.core.deposit import DepositReceipt, deposit_path_for, submit_deposit
from bridger.core.errors import BridgeCancelled, BridgeError
from bridger.core.utils import format_units, get_logger, to_base_units

LOGGER = get_logger("bridger.bridge")


class BridgeState(str, Enum):
    START = "start"
    AMOUNT_RESOLVED = "amount_resolved"
    ALLOWANCE_ENSURED = "allowance_ensured"
    DEPOSITED = "deposited"
    CONFIRMED = "confirmed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass(frozen=True)
class TransferIntent:
    """What the caller asked for; fixed for the whole run."""

    amount: Decimal
    asset: Asset
    sender: str
    inbox_address: str
    source_layer: str = "l1"
    destination_layer: str = "l2"

    def __post_init__(self) -> None:
        to_base_units(self.amount)
        object.__setattr__(self, "sender", Web3.to_checksum_address(self.sender))
        object.__setattr__(self, "inbox_address", Web3.to_checksum_address(self.inbox_address))

    @property
    def requested_base_units(self) -> int:
        return to_base_units(self.amount)


@dataclass(frozen=True)
class Confirmed:
    delta: int
    receipt: DepositReceipt
    balance_after: int

    state = BridgeState.CONFIRMED


@dataclass(frozen=True)
class TimedOut:
    """The deposit landed on L1 but L2 did not reflect it in time.

    This is not an error: the relay may simply be slower than the window.
    """

    receipt: DepositReceipt
    elapsed: int

    state = BridgeState.TIMED_OUT


@dataclass(frozen=True)
class Failed:
    cause: BridgeError
    failed_at: BridgeState

    state = BridgeState.FAILED


BridgeOutcome = Union[Confirmed, TimedOut, Failed]


class BridgeOrchestrator:
    """Runs resolve, approve, deposit and confirm for one intent."""

    def __init__(
        self,
        source: ChainClient,
        destination: ChainClient,
        *,
        defaults: Optional[BridgeDefaults] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.source = source
        self.destination = destination
        self.defaults = defaults or BridgeDefaults()
        self._sleep = sleep
        self.state = BridgeState.START

    def _advance(self, state: BridgeState) -> None:
        LOGGER.info("State %s -> %s", self.state.value, state.value)
        self.state = state

    def run(self, intent: TransferIntent, cancel: Optional[threading.Event] = None) -> BridgeOutcome:
        """Execute ``intent`` and return its terminal outcome.

        Fatal errors become :class:`Failed`; :class:`BridgeCancelled`
        propagates to the caller.
        """
        self.state = BridgeState.START
        try:
            return self._run(intent, cancel)
        except BridgeError as exc:
            LOGGER.error("Bridge failed after %s: %s", self.state.value, exc)
            if exc.reason:
                LOGGER.error("Reason: %s", exc.reason)
            if exc.data:
                LOGGER.error("Data: %s", exc.data)
            failed_at = self.state
            self._advance(BridgeState.FAILED)
            return Failed(cause=exc, failed_at=failed_at)

    def _run(self, intent: TransferIntent, cancel: Optional[threading.Event]) -> BridgeOutcome:
        path = deposit_path_for(intent.asset, self.defaults)
        LOGGER.info("Bridging %s %s from %s to %s", intent.amount, path.label, intent.source_layer, intent.destination_layer)

        baseline = self._destination_baseline(intent.sender)

        available = path.source_balance(self.source, intent.sender)
        LOGGER.info("%s balance: %s", self.source.name.upper(), format_units(available.amount))
        amount = resolve_amount(
            intent.requested_base_units,
            available.amount,
            native=path.native,
            fee_reserve=path.fee_reserve(self.defaults),
        )
        self._advance(BridgeState.AMOUNT_RESOLVED)

        self._check_cancelled(cancel)
        path.prepare(self.source, intent.sender, intent.inbox_address, amount)
        if not path.native:
            self._advance(BridgeState.ALLOWANCE_ENSURED)

        self._check_cancelled(cancel)
        receipt = submit_deposit(self.source, path, amount, intent.inbox_address)
        self._advance(BridgeState.DEPOSITED)

        try:
            result = await_delta(
                self.destination,
                intent.sender,
                NativeAsset(),
                baseline,
                timeout=self.defaults.confirmation_timeout,
                interval=self.defaults.poll_interval,
                cancel=cancel,
                sleep=self._sleep,
            )
        except BridgeCancelled as exc:
            LOGGER.warning("Stopped waiting; deposit %s is already on %s", receipt.tx_hash, receipt.source_layer)
            raise BridgeCancelled(str(exc), receipt=receipt) from exc

        if isinstance(result, BalanceIncreased):
            self._advance(BridgeState.CONFIRMED)
            LOGGER.info("Bridge successful")
            return Confirmed(delta=result.delta, receipt=receipt, balance_after=result.balance.amount)

        self._advance(BridgeState.TIMED_OUT)
        LOGGER.warning("Bridge transaction sent but balance did not update; the relay may take longer")
        return TimedOut(receipt=receipt, elapsed=result.elapsed)

    def _check_cancelled(self, cancel: Optional[threading.Event]) -> None:
        # Nothing value-bearing has been sent yet, so there is no receipt.
        if cancel is not None and cancel.is_set():
            LOGGER.warning("Cancelled at %s; no deposit was sent", self.state.value)
            raise BridgeCancelled(f"Bridge cancelled at {self.state.value}")

    def _destination_baseline(self, sender: str) -> Balance:
        baseline = read_balance(self.destination, sender, NativeAsset())
        LOGGER.info("%s balance before: %s", self.destination.name.upper(), format_units(baseline.amount))
        return baseline


def run_bridge(
    config: BridgeConfig,
    private_key: str,
    amount: Optional[str] = None,
    *,
    cancel: Optional[threading.Event] = None,
    chain_opener: Callable[..., ContextManager[ChainClient]] = open_chain,
) -> BridgeOutcome:
    """Open both layers from ``config`` and bridge ``amount`` display units.

    Raises ``ValueError`` before connecting when ``amount`` is malformed.
    """
    amount = amount or config.defaults.amount
    to_base_units(amount)
    asset: Asset = Erc20Token(config.native_token_address) if config.uses_token_path else NativeAsset()

    with ExitStack() as stack:
        try:
            source = stack.enter_context(
                chain_opener(config.l1, private_key, tx_timeout=config.defaults.tx_timeout)
            )
            destination = stack.enter_context(
                chain_opener(config.l2, private_key, tx_timeout=config.defaults.tx_timeout)
            )
        except BridgeError as exc:
            LOGGER.error("Bridge failed: %s", exc)
            return Failed(cause=exc, failed_at=BridgeState.START)

        LOGGER.info("Funnel address: %s", source.address)
        intent = TransferIntent(
            amount=Decimal(amount),
            asset=asset,
            sender=source.address,
            inbox_address=config.inbox_address,
            source_layer=config.l1.name,
            destination_layer=config.l2.name,
        )
        orchestrator = BridgeOrchestrator(source, destination, defaults=config.defaults)
        return orchestrator.run(intent, cancel=cancel)


__all__ = [
    "BridgeOrchestrator",
    "BridgeOutcome",
    "BridgeState",
    "Confirmed",
    "Failed",
    "TimedOut",
    "TransferIntent",
    "run_bridge",
]
