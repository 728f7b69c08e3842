"""ERC20 allowance checks and approvals."""

from __future__ import annotations

from typing import Optional

from web3 import Web3

from bridger.core.balances import ERC20_ABI, Erc20Token
from bridger.core.chain import ChainClient, ContractCall, IncludedTransaction
from bridger.core.errors import AllowanceFailure, TransactionError
from bridger.core.utils import format_units, get_logger

LOGGER = get_logger("bridger.allowance")


def allowance_of(client: ChainClient, token: Erc20Token, owner: str, spender: str) -> int:
    """Fetch the ERC20 allowance."""
    call = ContractCall(
        token.address,
        ERC20_ABI,
        "allowance",
        (Web3.to_checksum_address(owner), Web3.to_checksum_address(spender)),
    )
    return int(client.read(call))


def ensure_allowance(
    client: ChainClient,
    *,
    owner: str,
    spender: str,
    token: Erc20Token,
    required: int,
) -> Optional[IncludedTransaction]:
    """Make sure ``spender`` may move at least ``required`` of ``token``.

    Returns the included approve transaction, or ``None`` when the current
    allowance already covers ``required``. The approval sets the allowance to
    exactly ``required``.
    """
    current = allowance_of(client, token, owner, spender)
    LOGGER.info("Current allowance: %s", format_units(current))
    if current >= required:
        LOGGER.info("Sufficient allowance already exists")
        return None

    call = ContractCall(token.address, ERC20_ABI, "approve", (Web3.to_checksum_address(spender), required))
    try:
        tx_hash = client.send_transaction(call)
        included = client.wait(tx_hash)
    except TransactionError as exc:
        raise AllowanceFailure.wrap("Approval failed", exc) from exc

    LOGGER.info("Approval confirmed in block %s", included.block_number)
    return included


__all__ = ["allowance_of", "ensure_allowance"]
