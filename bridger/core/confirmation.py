"""Destination-layer settlement polling."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Optional, Union

from bridger.core.balances import Asset, Balance, read_balance
from bridger.core.chain import ChainClient
from bridger.core.errors import BridgeCancelled
from bridger.core.utils import format_units, get_logger

LOGGER = get_logger("bridger.confirmation")

PROGRESS_EVERY = 5


@dataclass(frozen=True)
class BalanceIncreased:
    """The destination balance rose above the baseline."""

    delta: int
    balance: Balance
    attempts: int


@dataclass(frozen=True)
class WaitTimedOut:
    """The balance never rose within the polling window."""

    elapsed: int
    attempts: int


PollResult = Union[BalanceIncreased, WaitTimedOut]


def await_delta(
    client: ChainClient,
    account: str,
    asset: Asset,
    baseline: Balance,
    *,
    timeout: int = 300,
    interval: int = 5,
    cancel: Optional[threading.Event] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> PollResult:
    """Poll ``account``'s balance until it exceeds ``baseline`` or time runs out.

    Each attempt reads a fresh balance. Between attempts the caller's ``cancel``
    event is waited on for ``interval`` seconds, so setting it stops polling
    immediately with :class:`BridgeCancelled`. ``sleep`` replaces that wait
    (tests pass a no-op).
    """
    if interval <= 0:
        raise ValueError("interval must be positive")
    attempts = max(1, -(-timeout // interval))
    cancel = cancel or threading.Event()

    LOGGER.info("Waiting for %s balance to update (timeout=%ss interval=%ss)", client.name.upper(), timeout, interval)
    for attempt in range(1, attempts + 1):
        if cancel.is_set():
            raise BridgeCancelled("Confirmation wait cancelled")

        current = read_balance(client, account, asset)
        delta = current.amount - baseline.amount
        if delta > 0:
            LOGGER.info("Balance after: %s, bridged amount: %s", format_units(current.amount), format_units(delta))
            return BalanceIncreased(delta=delta, balance=current, attempts=attempt)

        if sleep is not None:
            sleep(interval)
        elif cancel.wait(interval):
            raise BridgeCancelled("Confirmation wait cancelled")

        if attempt % PROGRESS_EVERY == 0:
            LOGGER.info("Still waiting... (%ss elapsed)", attempt * interval)

    LOGGER.warning("%s balance did not update within %ss", client.name.upper(), attempts * interval)
    return WaitTimedOut(elapsed=attempts * interval, attempts=attempts)


__all__ = ["BalanceIncreased", "PollResult", "WaitTimedOut", "await_delta"]
