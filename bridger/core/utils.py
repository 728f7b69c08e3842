"""Utility helpers shared across bridger core modules."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from web3 import Web3

DISPLAY_DECIMALS = 18


def get_logger(name: str = "bridger") -> logging.Logger:
    """Return a configured logger that prints to stdout."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def ensure_web3_connected(web3: Web3, *, expected_chain_id: Optional[int] = None) -> None:
    """Validate that ``web3`` is connected and optionally matches the expected chain id."""
    if not web3.is_connected():
        raise ConnectionError("Failed to connect to the configured RPC endpoint")
    if expected_chain_id is not None and web3.eth.chain_id != expected_chain_id:
        raise ValueError(f"RPC chain ID mismatch: expected {expected_chain_id}, got {web3.eth.chain_id}")


def to_base_units(amount: Union[str, int, Decimal], decimals: int = DISPLAY_DECIMALS) -> int:
    """Convert a display amount (``"1.5"``) into integer base units.

    Raises ``ValueError`` for non-numeric, non-positive, or over-precise input.
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {amount!r}") from exc
    if not value.is_finite() or value <= 0:
        raise ValueError(f"Amount must be positive, got {amount!r}")

    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {amount!r} has more than {decimals} decimal places")
    return int(scaled)


def format_units(value: int, decimals: int = DISPLAY_DECIMALS) -> str:
    """Render integer base units as a display string, like ``formatEther``."""
    text = format(Decimal(value).scaleb(-decimals).normalize(), "f")
    return text if "." in text else f"{text}.0"


__all__ = [
    "DISPLAY_DECIMALS",
    "ensure_web3_connected",
    "format_units",
    "get_logger",
    "to_base_units",
]
