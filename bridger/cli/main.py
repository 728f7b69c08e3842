"""CLI entrypoint for bridging funds from L1 to L2 through an inbox contract."""

from __future__ import annotations

import argparse
import os
import signal
import sys
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, NoReturn, Optional

from dotenv import load_dotenv
from eth_account import Account

from bridger.config import BridgeConfig, ConfigError, build_config, load_defaults
from bridger.core.bridge import BridgeOutcome, Confirmed, Failed, TimedOut, run_bridge
from bridger.core.errors import BridgeCancelled
from bridger.core.utils import format_units, get_logger, to_base_units

LOGGER = get_logger("bridger.cli")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130

USAGE_NOTES = """\
For ETH gas token chains: omit native_token_address
For ERC20 gas token chains: provide native_token_address (inbox_address should be ERC20Inbox)
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on malformed input."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILED, f"{self.prog}: error: {message}\n")


def validate_private_key(value: str) -> str:
    """Return ``value`` if it is a usable signing key, else raise ``ConfigError``."""
    key = value.strip()
    try:
        Account.from_key(key)
    except Exception as exc:  # eth_account raises ValueError/TypeError/binascii errors
        raise ConfigError("Invalid private key") from exc
    return key


def validate_amount(value: str) -> str:
    """Return ``value`` if it converts to base units, else raise ``ConfigError``."""
    try:
        to_base_units(value)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc
    return value


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = _ArgumentParser(
        prog="bridge-l1-to-l2",
        description="Deposit ETH or an ERC20 gas token into an L2 inbox and wait for it to arrive",
        epilog=USAGE_NOTES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("l1_rpc_url")
    parser.add_argument("l2_rpc_url")
    parser.add_argument("funnel_private_key")
    parser.add_argument("inbox_address")
    parser.add_argument("amount", nargs="?", default=None, help="Amount in display units (default: 10000)")
    parser.add_argument("native_token_address", nargs="?", default="")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file with operational defaults (or set BRIDGER_CONFIG)",
    )
    parser.add_argument("--timeout", type=int, default=None, help="Seconds to wait for the L2 balance")
    parser.add_argument("--interval", type=int, default=None, help="Seconds between L2 balance checks")
    parser.add_argument("--l1-chain-id", type=int, default=None)
    parser.add_argument("--l2-chain-id", type=int, default=None)
    return parser.parse_args(argv)


def _resolve_config(args: argparse.Namespace) -> BridgeConfig:
    config_path = args.config
    if config_path is None and os.getenv("BRIDGER_CONFIG"):
        config_path = Path(os.environ["BRIDGER_CONFIG"])

    return build_config(
        l1_rpc_url=args.l1_rpc_url,
        l2_rpc_url=args.l2_rpc_url,
        inbox_address=args.inbox_address,
        native_token_address=args.native_token_address,
        overrides=load_defaults(config_path),
        l1_chain_id=args.l1_chain_id,
        l2_chain_id=args.l2_chain_id,
        confirmation_timeout=args.timeout,
        poll_interval=args.interval,
    )


@contextmanager
def cancel_on_signals(cancel: threading.Event) -> Iterator[threading.Event]:
    """Set ``cancel`` on SIGINT/SIGTERM for the duration of the block."""
    previous = {}

    def _handler(signum, _frame) -> None:
        LOGGER.warning("Received %s, stopping", signal.Signals(signum).name)
        cancel.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _handler)
    try:
        yield cancel
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def report(outcome: BridgeOutcome) -> int:
    """Log ``outcome`` and return the matching exit code."""
    if isinstance(outcome, Confirmed):
        LOGGER.info(
            "Bridged %s in tx %s (block %s); L2 balance now %s",
            format_units(outcome.delta),
            outcome.receipt.tx_hash,
            outcome.receipt.inclusion_block,
            format_units(outcome.balance_after),
        )
        return EXIT_OK
    if isinstance(outcome, TimedOut):
        LOGGER.warning(
            "Deposit %s confirmed on L1 but L2 did not update within %ss; it is likely still pending",
            outcome.receipt.tx_hash,
            outcome.elapsed,
        )
        return EXIT_OK
    if isinstance(outcome, Failed):
        LOGGER.error("Error bridging L1 to L2 (%s): %s", outcome.failed_at.value, outcome.cause)
        return EXIT_FAILED
    raise TypeError(f"Unknown outcome: {outcome!r}")


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = _parse_args(argv)

    try:
        config = _resolve_config(args)
        private_key = validate_private_key(args.funnel_private_key)
        amount = validate_amount(args.amount or config.defaults.amount)
    except ConfigError as exc:
        print(f"❌ Error: {exc}")
        sys.exit(EXIT_FAILED)

    LOGGER.info("L1 RPC: %s", config.l1.rpc_url)
    LOGGER.info("L2 RPC: %s", config.l2.rpc_url)
    if config.uses_token_path:
        LOGGER.info("Native Token: %s", config.native_token_address)
        LOGGER.info("ERC20Inbox: %s", config.inbox_address)
    else:
        LOGGER.info("Inbox: %s", config.inbox_address)

    with cancel_on_signals(threading.Event()) as cancel:
        try:
            outcome = run_bridge(config, private_key, amount, cancel=cancel)
        except BridgeCancelled as exc:
            if exc.receipt is not None:
                LOGGER.warning("Cancelled; deposit %s stays submitted", exc.receipt.tx_hash)
            sys.exit(EXIT_CANCELLED)

    sys.exit(report(outcome))


if __name__ == "__main__":  # pragma: no cover - CLI entry
    main()
