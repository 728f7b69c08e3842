"""Amount resolution against an observed balance."""

from __future__ import annotations

from bridger.core.errors import InsufficientFundsError
from bridger.core.utils import format_units, get_logger

LOGGER = get_logger("bridger.amounts")


def resolve_amount(requested: int, available: int, *, native: bool, fee_reserve: int = 0) -> int:
    """Decide how much to move given ``available`` base units.

    A shortfall does not abort the run: whatever is safely available is moved
    instead. On the native path ``fee_reserve`` is held back for gas first; on
    the token path fees are paid in the native asset, so the whole token
    balance is usable.
    """
    if requested <= 0:
        raise ValueError(f"Requested amount must be positive, got {requested}")
    if available <= 0:
        raise InsufficientFundsError("Sender has no balance on the source layer")
    if available >= requested:
        return requested

    LOGGER.warning(
        "Not enough balance: need %s, have %s",
        format_units(requested),
        format_units(available),
    )
    if not native:
        LOGGER.warning("Using available balance: %s", format_units(available))
        return available

    remainder = available - fee_reserve
    if remainder <= 0:
        raise InsufficientFundsError(
            f"Insufficient balance even for fees: have {format_units(available)}, "
            f"fee reserve {format_units(fee_reserve)}"
        )
    LOGGER.warning("Using available balance after fee reserve: %s", format_units(remainder))
    return remainder


__all__ = ["resolve_amount"]
