"""Asset variants and point-in-time balance reads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from web3 import Web3

from bridger.core.chain import ChainClient, ContractCall

ERC20_ABI = "erc20.json"


@dataclass(frozen=True)
class NativeAsset:
    """The layer's gas asset (ETH, or the L2 gas token once bridged)."""

    def __str__(self) -> str:
        return "native"


@dataclass(frozen=True)
class Erc20Token:
    """An ERC20 token identified by its contract address."""

    address: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", Web3.to_checksum_address(self.address))

    def __str__(self) -> str:
        return self.address


Asset = Union[NativeAsset, Erc20Token]


@dataclass(frozen=True)
class Balance:
    """Snapshot of ``account``'s holding of ``asset`` on ``layer``."""

    layer: str
    account: str
    asset: Asset
    amount: int


def read_balance(client: ChainClient, account: str, asset: Asset) -> Balance:
    """Read a fresh balance; callers must not reuse it across decision points."""
    if isinstance(asset, Erc20Token):
        call = ContractCall(asset.address, ERC20_ABI, "balanceOf", (Web3.to_checksum_address(account),))
        amount = int(client.read(call))
    else:
        amount = int(client.get_balance(account))
    return Balance(layer=client.name, account=account, asset=asset, amount=amount)


__all__ = ["Asset", "Balance", "ERC20_ABI", "Erc20Token", "NativeAsset", "read_balance"]
