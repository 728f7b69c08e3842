"""Core domain logic for the bridger."""

from .allowance import ensure_allowance
from .amounts import resolve_amount
from .balances import Balance, Erc20Token, NativeAsset, read_balance
from .bridge import (
    BridgeOrchestrator,
    BridgeState,
    Confirmed,
    Failed,
    TimedOut,
    TransferIntent,
    run_bridge,
)
from .chain import ChainClient, ContractCall, open_chain
from .confirmation import await_delta
from .deposit import DepositReceipt, NativeDeposit, TokenDeposit, submit_deposit
from .transfer import TransferResult, transfer_tokens

__all__ = [
    "Balance",
    "BridgeOrchestrator",
    "BridgeState",
    "ChainClient",
    "Confirmed",
    "ContractCall",
    "DepositReceipt",
    "Erc20Token",
    "Failed",
    "NativeAsset",
    "NativeDeposit",
    "TimedOut",
    "TokenDeposit",
    "TransferIntent",
    "TransferResult",
    "await_delta",
    "ensure_allowance",
    "open_chain",
    "read_balance",
    "resolve_amount",
    "run_bridge",
    "submit_deposit",
    "transfer_tokens",
]
