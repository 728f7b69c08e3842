"""CLI entrypoint for a plain ERC20 transfer on a single layer."""

from __future__ import annotations

import sys
from typing import List, Optional

from dotenv import load_dotenv
from web3 import Web3

from bridger.cli.main import EXIT_FAILED, EXIT_OK, _ArgumentParser, validate_amount, validate_private_key
from bridger.config import ChainConfig, ConfigError
from bridger.core.balances import Erc20Token
from bridger.core.chain import open_chain
from bridger.core.errors import BridgeError
from bridger.core.transfer import transfer_tokens
from bridger.core.utils import format_units, get_logger

LOGGER = get_logger("bridger.cli.transfer")


def _parse_args(argv: Optional[List[str]] = None):
    parser = _ArgumentParser(prog="transfer-erc20", description="Transfer ERC20 tokens to a recipient")
    parser.add_argument("rpc_url")
    parser.add_argument("from_private_key")
    parser.add_argument("token_address")
    parser.add_argument("to_address")
    parser.add_argument("amount")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None, *, chain_opener=open_chain) -> None:
    load_dotenv()
    args = _parse_args(argv)

    try:
        private_key = validate_private_key(args.from_private_key)
        amount = validate_amount(args.amount)
        for name in ("token_address", "to_address"):
            if not Web3.is_address(getattr(args, name)):
                raise ConfigError(f"Invalid address for {name}: {getattr(args, name)}")
    except ConfigError as exc:
        print(f"❌ Error: {exc}")
        sys.exit(EXIT_FAILED)

    LOGGER.info("Transferring %s tokens", amount)
    LOGGER.info("Token: %s", args.token_address)
    LOGGER.info("To: %s", args.to_address)

    try:
        with chain_opener(ChainConfig(name="l1", rpc_url=args.rpc_url), private_key) as client:
            LOGGER.info("From: %s", client.address)
            result = transfer_tokens(client, Erc20Token(args.token_address), args.to_address, amount)
    except BridgeError as exc:
        LOGGER.error("Error: %s", exc)
        if exc.reason:
            LOGGER.error("Reason: %s", exc.reason)
        sys.exit(EXIT_FAILED)

    if result.partial:
        LOGGER.warning("Sent available balance %s %s instead of %s", format_units(result.amount), result.symbol, amount)
    sys.exit(EXIT_OK)


if __name__ == "__main__":  # pragma: no cover - CLI entry
    main()
