"""Tests for amount resolution."""

import pytest

from bridger.core.amounts import resolve_amount
from bridger.core.errors import InsufficientFundsError

FEE = 10**16


class TestFullBalance:
    @pytest.mark.parametrize("native", [True, False])
    @pytest.mark.parametrize("requested,available", [(1, 1), (100, 100), (100, 5_000), (10**22, 10**23)])
    def test_requested_amount_is_used(self, native: bool, requested: int, available: int) -> None:
        assert resolve_amount(requested, available, native=native, fee_reserve=FEE) == requested


class TestPartialBalance:
    @pytest.mark.parametrize("available", [FEE + 1, 2 * FEE, 10**18 - 1])
    def test_native_path_holds_back_fee_reserve(self, available: int) -> None:
        assert resolve_amount(10**18, available, native=True, fee_reserve=FEE) == available - FEE

    @pytest.mark.parametrize("available", [1, FEE - 1, FEE])
    def test_native_path_fails_when_fees_eat_everything(self, available: int) -> None:
        with pytest.raises(InsufficientFundsError, match="even for fees"):
            resolve_amount(10**18, available, native=True, fee_reserve=FEE)

    def test_token_path_moves_whole_balance(self) -> None:
        assert resolve_amount(10**18, 5, native=False, fee_reserve=FEE) == 5

    def test_small_reserve(self) -> None:
        assert resolve_amount(100, 80, native=True, fee_reserve=1) == 79


class TestEmptyBalance:
    @pytest.mark.parametrize("native", [True, False])
    def test_zero_always_fails(self, native: bool) -> None:
        with pytest.raises(InsufficientFundsError):
            resolve_amount(1, 0, native=native, fee_reserve=0)


def test_rejects_non_positive_request() -> None:
    with pytest.raises(ValueError):
        resolve_amount(0, 10, native=True)
