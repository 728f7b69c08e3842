"""Shared fixtures: an in-memory chain that speaks the ChainClient interface."""

from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple

import pytest
from web3 import Web3

from bridger.core.chain import ContractCall, IncludedTransaction
from bridger.core.errors import ChainReadError, TransactionError

SENDER = Web3.to_checksum_address("0x" + "a" * 40)
RECIPIENT = Web3.to_checksum_address("0x" + "b" * 40)
TOKEN = Web3.to_checksum_address("0x" + "c" * 40)
INBOX = Web3.to_checksum_address("0x" + "d" * 40)

ETHER = 10**18


class FakeChain:
    """Stateful stand-in for :class:`bridger.core.chain.ChainClient`.

    ``native_sequence`` scripts successive native balance reads for an
    account; the last value repeats once the script runs out.
    """

    def __init__(self, name: str = "l1", *, address: str = SENDER, journal: Optional[List[Tuple]] = None) -> None:
        self.name = name
        self.address = address
        self.journal = journal if journal is not None else []
        self.native: Dict[str, int] = {}
        self.native_sequence: Dict[str, List[int]] = {}
        self.tokens: Dict[Tuple[str, str], int] = {}
        self.allowances: Dict[Tuple[str, str, str], int] = {}
        self.symbol: Optional[str] = "TKN"
        self.sent: List[ContractCall] = []
        self.send_errors: Dict[str, TransactionError] = {}
        self.wait_errors: Dict[str, TransactionError] = {}
        self.balance_reads = 0
        self.closed = False
        self._by_hash: Dict[str, ContractCall] = {}

    def get_balance(self, account: str) -> int:
        self.balance_reads += 1
        self.journal.append(("get_balance", self.name))
        script = self.native_sequence.get(account)
        if script:
            return script.pop(0) if len(script) > 1 else script[0]
        return self.native.get(account, 0)

    def read(self, call: ContractCall) -> Any:
        self.journal.append(("read", self.name, call.function))
        if call.function == "balanceOf":
            return self.tokens.get((call.address, call.args[0]), 0)
        if call.function == "allowance":
            return self.allowances.get((call.address, call.args[0], call.args[1]), 0)
        if call.function == "symbol":
            if self.symbol is None:
                raise ChainReadError("symbol reverted")
            return self.symbol
        raise AssertionError(f"unexpected read {call.function}")

    def send_transaction(self, call: ContractCall) -> str:
        self.journal.append(("send", self.name, call.function))
        self.sent.append(call)
        if call.function in self.send_errors:
            raise self.send_errors[call.function]

        tx_hash = "0x" + format(len(self.sent), "064x")
        self._by_hash[tx_hash] = call
        if call.function not in self.wait_errors:
            self._apply(call)
        return tx_hash

    def wait(self, tx_hash: str) -> IncludedTransaction:
        call = self._by_hash[tx_hash]
        if call.function in self.wait_errors:
            raise self.wait_errors[call.function]
        return IncludedTransaction(tx_hash=tx_hash, block_number=100 + len(self.sent), layer=self.name, gas_used=21_000)

    def close(self) -> None:
        self.closed = True

    def _apply(self, call: ContractCall) -> None:
        if call.function == "approve":
            spender, amount = call.args
            self.allowances[(call.address, self.address, spender)] = amount
        elif call.function == "transfer":
            to, amount = call.args
            self.tokens[(call.address, self.address)] = self.tokens.get((call.address, self.address), 0) - amount
            self.tokens[(call.address, to)] = self.tokens.get((call.address, to), 0) + amount
        elif call.function == "depositEth":
            self.native[self.address] = self.native.get(self.address, 0) - call.value


@pytest.fixture
def journal() -> List[Tuple]:
    return []


@pytest.fixture
def l1(journal) -> FakeChain:
    return FakeChain("l1", journal=journal)


@pytest.fixture
def l2(journal) -> FakeChain:
    return FakeChain("l2", journal=journal)


def fake_opener(chains: Dict[str, FakeChain]):
    """Build a replacement for :func:`open_chain` that yields ``chains[name]``."""

    @contextmanager
    def _open(config, private_key=None, **_kwargs):
        chain = chains[config.name]
        try:
            yield chain
        finally:
            chain.close()

    return _open
