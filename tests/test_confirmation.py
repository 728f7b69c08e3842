"""Tests for destination-layer confirmation polling."""

import threading

import pytest

from bridger.core.balances import Balance, NativeAsset
from bridger.core.confirmation import BalanceIncreased, WaitTimedOut, await_delta
from bridger.core.errors import BridgeCancelled

from .conftest import SENDER


def _baseline(amount: int) -> Balance:
    return Balance(layer="l2", account=SENDER, asset=NativeAsset(), amount=amount)


class _Sleeps:
    def __init__(self) -> None:
        self.calls = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def test_confirms_on_first_increase(l2) -> None:
    l2.native_sequence[SENDER] = [100, 100, 150]
    sleeps = _Sleeps()

    result = await_delta(l2, SENDER, NativeAsset(), _baseline(100), timeout=300, interval=5, sleep=sleeps)

    assert isinstance(result, BalanceIncreased)
    assert result.delta == 50
    assert result.attempts == 3
    assert l2.balance_reads == 3
    assert sleeps.calls == [5, 5]


def test_times_out_without_increase(l2) -> None:
    l2.native_sequence[SENDER] = [100]

    result = await_delta(l2, SENDER, NativeAsset(), _baseline(100), timeout=10, interval=5, sleep=_Sleeps())

    assert isinstance(result, WaitTimedOut)
    assert result.attempts == 2
    assert result.elapsed == 10
    assert l2.balance_reads == 2


def test_uneven_window_rounds_attempts_up(l2) -> None:
    l2.native[SENDER] = 0
    sleeps = _Sleeps()

    result = await_delta(l2, SENDER, NativeAsset(), _baseline(0), timeout=7, interval=5, sleep=sleeps)

    assert isinstance(result, WaitTimedOut)
    assert result.attempts == 2
    assert result.elapsed >= 7
    assert sum(sleeps.calls) >= 7


def test_decrease_keeps_polling(l2) -> None:
    l2.native_sequence[SENDER] = [90, 80, 101]
    result = await_delta(l2, SENDER, NativeAsset(), _baseline(100), timeout=30, interval=5, sleep=_Sleeps())
    assert isinstance(result, BalanceIncreased)
    assert result.delta == 1


def test_default_window_is_sixty_attempts(l2) -> None:
    l2.native[SENDER] = 0
    result = await_delta(l2, SENDER, NativeAsset(), _baseline(0), sleep=_Sleeps())
    assert result.attempts == 60
    assert result.elapsed == 300


def test_cancel_stops_polling(l2) -> None:
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(BridgeCancelled):
        await_delta(l2, SENDER, NativeAsset(), _baseline(0), timeout=10, interval=5, cancel=cancel)
    assert l2.balance_reads == 0


def test_cancel_during_wait(l2) -> None:
    l2.native[SENDER] = 0
    cancel = threading.Event()
    timer = threading.Timer(0.05, cancel.set)
    timer.start()
    try:
        with pytest.raises(BridgeCancelled):
            await_delta(l2, SENDER, NativeAsset(), _baseline(0), timeout=120, interval=60, cancel=cancel)
    finally:
        timer.cancel()
    assert l2.balance_reads == 1
