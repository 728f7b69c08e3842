"""Same-layer ERC20 transfer using the bridge's amount policy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from web3 import Web3

from bridger.core.amounts import resolve_amount
from bridger.core.balances import ERC20_ABI, Erc20Token, read_balance
from bridger.core.chain import ChainClient, ContractCall, IncludedTransaction
from bridger.core.errors import ChainReadError
from bridger.core.utils import format_units, get_logger, to_base_units

LOGGER = get_logger("bridger.transfer")

DEFAULT_SYMBOL = "TOKEN"


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a completed transfer."""

    transaction: IncludedTransaction
    symbol: str
    requested: int
    amount: int
    recipient_balance: int

    @property
    def partial(self) -> bool:
        return self.amount < self.requested


def token_symbol(client: ChainClient, token: Erc20Token) -> str:
    """Return the token symbol, or ``"TOKEN"`` if the contract lacks one."""
    try:
        return str(client.read(ContractCall(token.address, ERC20_ABI, "symbol")))
    except ChainReadError as exc:
        LOGGER.debug("symbol() unavailable for %s: %s", token.address, exc)
        return DEFAULT_SYMBOL


def transfer_tokens(
    client: ChainClient,
    token: Erc20Token,
    recipient: str,
    amount: Union[str, int],
) -> TransferResult:
    """Transfer ``amount`` display units of ``token`` from the client's signer.

    When the sender holds less than requested, the whole balance is sent.
    """
    requested = to_base_units(amount)
    recipient = Web3.to_checksum_address(recipient)
    sender = client.address
    symbol = token_symbol(client, token)

    balance = read_balance(client, sender, token)
    LOGGER.info("Current balance: %s %s", format_units(balance.amount), symbol)
    to_send = resolve_amount(requested, balance.amount, native=False)

    tx_hash = client.send_transaction(ContractCall(token.address, ERC20_ABI, "transfer", (recipient, to_send)))
    included = client.wait(tx_hash)
    LOGGER.info("Transferred %s %s to %s", format_units(to_send), symbol, recipient)

    recipient_balance = read_balance(client, recipient, token)
    LOGGER.info("Recipient balance: %s %s", format_units(recipient_balance.amount), symbol)

    return TransferResult(
        transaction=included,
        symbol=symbol,
        requested=requested,
        amount=to_send,
        recipient_balance=recipient_balance.amount,
    )


__all__ = ["DEFAULT_SYMBOL", "TransferResult", "token_symbol", "transfer_tokens"]
