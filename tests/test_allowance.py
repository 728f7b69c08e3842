"""Tests for the ERC20 allowance manager."""

import pytest

from bridger.core.allowance import allowance_of, ensure_allowance
from bridger.core.balances import Erc20Token
from bridger.core.errors import AllowanceFailure, TransactionError

from .conftest import INBOX, SENDER, TOKEN


def _approvals(chain):
    return [call for call in chain.sent if call.function == "approve"]


def test_sufficient_allowance_is_noop(l1) -> None:
    l1.allowances[(TOKEN, SENDER, INBOX)] = 500
    result = ensure_allowance(l1, owner=SENDER, spender=INBOX, token=Erc20Token(TOKEN), required=500)
    assert result is None
    assert l1.sent == []


def test_insufficient_allowance_is_overwritten_with_exact_amount(l1) -> None:
    l1.allowances[(TOKEN, SENDER, INBOX)] = 10
    included = ensure_allowance(l1, owner=SENDER, spender=INBOX, token=Erc20Token(TOKEN), required=300)

    assert included is not None
    (approve,) = _approvals(l1)
    assert approve.args == (INBOX, 300)
    assert approve.value == 0
    assert allowance_of(l1, Erc20Token(TOKEN), SENDER, INBOX) == 300


def test_second_call_issues_no_approval(l1) -> None:
    token = Erc20Token(TOKEN)
    ensure_allowance(l1, owner=SENDER, spender=INBOX, token=token, required=42)
    ensure_allowance(l1, owner=SENDER, spender=INBOX, token=token, required=42)
    assert len(_approvals(l1)) == 1


def test_allowance_is_read_before_each_comparison(l1) -> None:
    ensure_allowance(l1, owner=SENDER, spender=INBOX, token=Erc20Token(TOKEN), required=1)
    assert l1.journal[0] == ("read", "l1", "allowance")


def test_reverted_approval_is_fatal(l1) -> None:
    l1.wait_errors["approve"] = TransactionError("reverted", tx_hash="0x01", reason="ERC20: paused", data="0xdead")
    with pytest.raises(AllowanceFailure) as excinfo:
        ensure_allowance(l1, owner=SENDER, spender=INBOX, token=Erc20Token(TOKEN), required=5)

    assert excinfo.value.reason == "ERC20: paused"
    assert excinfo.value.data == "0xdead"
    assert isinstance(excinfo.value.__cause__, TransactionError)
