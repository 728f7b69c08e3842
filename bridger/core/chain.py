"""Uniform per-layer chain access: reads, signed sends, inclusion waits."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

import requests
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from bridger.config import ChainConfig
from bridger.contracts import load_contract_abi
from bridger.core.errors import ChainReadError, TransactionError
from bridger.core.utils import ensure_web3_connected, get_logger

LOGGER = get_logger("bridger.chain")

_RPC_ERRORS = (Web3Exception, requests.RequestException, ConnectionError, ValueError)


@dataclass(frozen=True)
class ContractCall:
    """A contract function invocation, described without binding it to a chain.

    ``abi`` names a JSON file in :mod:`bridger.contracts`. ``gas`` is a fixed
    limit; ``None`` lets the node estimate it.
    """

    address: str
    abi: str
    function: str
    args: Tuple[Any, ...] = ()
    value: int = 0
    gas: Optional[int] = None


@dataclass(frozen=True)
class IncludedTransaction:
    """A transaction that was mined with a success status."""

    tx_hash: str
    block_number: int
    layer: str
    gas_used: int


class ChainClient:
    """Read and write access to one layer through a single ``Web3`` instance."""

    def __init__(
        self,
        web3: Web3,
        *,
        name: str,
        account: Optional[LocalAccount] = None,
        tx_timeout: int = 120,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.web3 = web3
        self.name = name
        self.account = account
        self.tx_timeout = tx_timeout
        self._session = session
        self._contracts: Dict[Tuple[str, str], Contract] = {}

    @property
    def address(self) -> str:
        if self.account is None:
            raise ValueError(f"No signer configured for {self.name}")
        return self.account.address

    def _contract(self, address: str, abi: str) -> Contract:
        checksum_address = Web3.to_checksum_address(address)
        key = (checksum_address, abi)
        contract = self._contracts.get(key)
        if contract is None:
            contract = self.web3.eth.contract(address=checksum_address, abi=load_contract_abi(abi))
            self._contracts[key] = contract
        return contract

    def _bind(self, call: ContractCall):
        contract = self._contract(call.address, call.abi)
        return getattr(contract.functions, call.function)(*call.args)

    def get_balance(self, account: str) -> int:
        """Return the native balance of ``account`` in wei."""
        try:
            return int(self.web3.eth.get_balance(Web3.to_checksum_address(account)))
        except _RPC_ERRORS as exc:
            raise ChainReadError(f"Failed to read {self.name} balance of {account}: {exc}") from exc

    def read(self, call: ContractCall) -> Any:
        """Execute a view function and return its decoded result."""
        try:
            return self._bind(call).call()
        except ContractLogicError as exc:
            raise ChainReadError(
                f"{call.function} reverted on {self.name}: {exc.message}",
                reason=exc.message,
                data=exc.data,
            ) from exc
        except _RPC_ERRORS as exc:
            raise ChainReadError(f"Failed to call {call.function} on {self.name}: {exc}") from exc

    def send_transaction(self, call: ContractCall) -> str:
        """Sign and broadcast ``call``; return the transaction hash."""
        sender = self.address
        try:
            params = {
                "from": sender,
                "nonce": self.web3.eth.get_transaction_count(sender, "pending"),
                "chainId": self.web3.eth.chain_id,
                "value": call.value,
            }
            if call.gas is not None:
                params["gas"] = call.gas
            tx = self._bind(call).build_transaction(params)
            signed = self.account.sign_transaction(tx)
            tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        except ContractLogicError as exc:
            raise TransactionError(
                f"{call.function} would revert: {exc.message}",
                reason=exc.message,
                data=exc.data,
            ) from exc
        except _RPC_ERRORS as exc:
            raise TransactionError(f"Failed to send {call.function} on {self.name}: {exc}") from exc

        tx_hex = Web3.to_hex(tx_hash)
        LOGGER.info("%s tx sent on %s: %s", call.function, self.name, tx_hex)
        return tx_hex

    def wait(self, tx_hash: str) -> IncludedTransaction:
        """Block until ``tx_hash`` is mined; raise if it reverted or never landed."""
        try:
            receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.tx_timeout)
        except TimeExhausted as exc:
            raise TransactionError(
                f"Transaction {tx_hash} not mined on {self.name} within {self.tx_timeout}s",
                tx_hash=tx_hash,
            ) from exc
        except _RPC_ERRORS as exc:
            raise TransactionError(f"Failed waiting for {tx_hash} on {self.name}: {exc}", tx_hash=tx_hash) from exc

        if receipt["status"] != 1:
            reason, data = self._revert_reason(tx_hash, receipt["blockNumber"])
            raise TransactionError(
                f"Transaction {tx_hash} reverted in block {receipt['blockNumber']}",
                tx_hash=tx_hash,
                reason=reason,
                data=data,
            )

        return IncludedTransaction(
            tx_hash=tx_hash,
            block_number=receipt["blockNumber"],
            layer=self.name,
            gas_used=receipt.get("gasUsed", 0),
        )

    def _revert_reason(self, tx_hash: str, block_number: int) -> Tuple[Optional[str], Any]:
        """Replay a reverted transaction as a call to recover its revert reason."""
        try:
            tx = self.web3.eth.get_transaction(tx_hash)
            self.web3.eth.call(
                {"from": tx["from"], "to": tx["to"], "data": tx["input"], "value": tx["value"]},
                block_number,
            )
        except ContractLogicError as exc:
            return exc.message, exc.data
        except _RPC_ERRORS as exc:
            LOGGER.debug("Could not replay %s for a revert reason: %s", tx_hash, exc)
        return None, None

    def close(self) -> None:
        """Drop cached contracts and release the HTTP session."""
        self._contracts.clear()
        if self._session is not None:
            self._session.close()
            self._session = None


def _http_web3(config: ChainConfig, session: requests.Session) -> Web3:
    provider = Web3.HTTPProvider(
        config.ensure_rpc_url(),
        request_kwargs={"timeout": config.request_timeout},
        session=session,
        exception_retry_configuration=None,
    )
    return Web3(provider)


@contextmanager
def open_chain(
    config: ChainConfig,
    private_key: Optional[str] = None,
    *,
    tx_timeout: int = 120,
    web3_factory: Optional[Callable[[ChainConfig, requests.Session], Web3]] = None,
) -> Iterator[ChainClient]:
    """Connect to ``config`` and yield a client that is closed on exit."""
    session = requests.Session()
    client = None
    try:
        web3 = (web3_factory or _http_web3)(config, session)
        account = Account.from_key(private_key) if private_key else None
        client = ChainClient(web3, name=config.name, account=account, tx_timeout=tx_timeout, session=session)
        try:
            ensure_web3_connected(web3, expected_chain_id=config.chain_id)
        except _RPC_ERRORS as exc:
            raise ChainReadError(f"{config.name} RPC {config.rpc_url} unusable: {exc}") from exc
        LOGGER.info("Connected to %s (%s)", config.name, config.rpc_url)
        yield client
    finally:
        if client is not None:
            client.close()
        else:
            session.close()


__all__ = ["ChainClient", "ContractCall", "IncludedTransaction", "open_chain"]
