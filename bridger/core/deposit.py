"""Inbox deposit submission for the native-asset and token paths."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from bridger.config import BridgeDefaults
from bridger.core.allowance import ensure_allowance
from bridger.core.balances import Asset, Balance, Erc20Token, NativeAsset, read_balance
from bridger.core.chain import ChainClient, ContractCall, IncludedTransaction
from bridger.core.errors import SubmissionFailure, TransactionError
from bridger.core.utils import format_units, get_logger

LOGGER = get_logger("bridger.deposit")

INBOX_ABI = "inbox.json"
ERC20_INBOX_ABI = "erc20_inbox.json"


@dataclass(frozen=True)
class DepositReceipt:
    """Source-layer inclusion of a deposit transaction."""

    tx_hash: str
    inclusion_block: int
    source_layer: str
    amount: int
    gas_used: int = 0


@dataclass(frozen=True)
class NativeDeposit:
    """``depositEth()`` on the inbox with the amount attached as value."""

    gas_limit: int = 300_000

    native = True
    label = "ETH"

    @property
    def asset(self) -> Asset:
        return NativeAsset()

    def source_balance(self, client: ChainClient, account: str) -> Balance:
        return read_balance(client, account, self.asset)

    def fee_reserve(self, defaults: BridgeDefaults) -> int:
        return defaults.fee_reserve_wei

    def prepare(self, client: ChainClient, owner: str, inbox_address: str, amount: int) -> Optional[IncludedTransaction]:
        return None

    def build_call(self, inbox_address: str, amount: int) -> ContractCall:
        return ContractCall(inbox_address, INBOX_ABI, "depositEth", value=amount, gas=self.gas_limit)


@dataclass(frozen=True)
class TokenDeposit:
    """``depositERC20(amount)`` on an ERC20 inbox, after an approval."""

    token: Erc20Token
    gas_limit: int = 500_000

    native = False
    label = "tokens"

    @property
    def asset(self) -> Asset:
        return self.token

    def source_balance(self, client: ChainClient, account: str) -> Balance:
        return read_balance(client, account, self.token)

    def fee_reserve(self, defaults: BridgeDefaults) -> int:
        return 0

    def prepare(self, client: ChainClient, owner: str, inbox_address: str, amount: int) -> Optional[IncludedTransaction]:
        return ensure_allowance(client, owner=owner, spender=inbox_address, token=self.token, required=amount)

    def build_call(self, inbox_address: str, amount: int) -> ContractCall:
        return ContractCall(inbox_address, ERC20_INBOX_ABI, "depositERC20", (amount,), gas=self.gas_limit)


DepositPath = Union[NativeDeposit, TokenDeposit]


def deposit_path_for(asset: Asset, defaults: BridgeDefaults) -> DepositPath:
    """Pick the deposit protocol for ``asset``."""
    if isinstance(asset, Erc20Token):
        return TokenDeposit(token=asset, gas_limit=defaults.erc20_deposit_gas)
    return NativeDeposit(gas_limit=defaults.eth_deposit_gas)


def submit_deposit(client: ChainClient, path: DepositPath, amount: int, inbox_address: str) -> DepositReceipt:
    """Send the deposit for ``path`` and block until it is included.

    On the token path the inbox must already be approved for ``amount``;
    otherwise the deposit reverts and is reported as a failure.
    """
    call = path.build_call(inbox_address, amount)
    LOGGER.info("Calling %s on %s with %s %s", call.function, inbox_address, format_units(amount), path.label)
    try:
        tx_hash = client.send_transaction(call)
        included = client.wait(tx_hash)
    except TransactionError as exc:
        raise SubmissionFailure.wrap("Deposit failed", exc) from exc

    LOGGER.info("%s transaction confirmed in block %s", client.name.upper(), included.block_number)
    return DepositReceipt(
        tx_hash=included.tx_hash,
        inclusion_block=included.block_number,
        source_layer=included.layer,
        amount=amount,
        gas_used=included.gas_used,
    )


__all__ = [
    "DepositPath",
    "DepositReceipt",
    "ERC20_INBOX_ABI",
    "INBOX_ABI",
    "NativeDeposit",
    "TokenDeposit",
    "deposit_path_for",
    "submit_deposit",
]
