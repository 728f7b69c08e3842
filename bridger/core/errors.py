"""Error taxonomy for bridging runs."""

from __future__ import annotations

from typing import Any, Optional


class BridgeError(Exception):
    """Base class for fatal bridging errors.

    ``reason`` holds an on-chain revert reason when one is known and ``data``
    holds the raw revert payload. The original exception is kept on
    ``__cause__``.
    """

    def __init__(self, message: str, *, reason: Optional[str] = None, data: Any = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.data = data


class InsufficientFundsError(BridgeError):
    """The sender has nothing (or not enough to cover fees) to move."""


class ChainReadError(BridgeError):
    """An RPC read (balance, allowance, view call) failed."""


class TransactionError(BridgeError):
    """A transaction could not be sent, reverted, or was never mined."""

    def __init__(
        self,
        message: str,
        *,
        tx_hash: Optional[str] = None,
        reason: Optional[str] = None,
        data: Any = None,
    ) -> None:
        super().__init__(message, reason=reason, data=data)
        self.tx_hash = tx_hash

    @classmethod
    def wrap(cls, message: str, exc: "TransactionError") -> "TransactionError":
        """Re-type ``exc`` as ``cls``, keeping its hash, reason and data."""
        return cls(f"{message}: {exc}", tx_hash=exc.tx_hash, reason=exc.reason, data=exc.data)


class AllowanceFailure(TransactionError):
    """The ERC20 approve transaction failed."""


class SubmissionFailure(TransactionError):
    """The inbox deposit transaction failed."""


class BridgeCancelled(Exception):
    """The run was cancelled from outside.

    A deposit that was already submitted is not rolled back; ``receipt``
    describes it. ``receipt`` is ``None`` when cancellation came first.
    """

    def __init__(self, message: str, *, receipt: Any = None) -> None:
        super().__init__(message)
        self.receipt = receipt


__all__ = [
    "AllowanceFailure",
    "BridgeCancelled",
    "BridgeError",
    "ChainReadError",
    "InsufficientFundsError",
    "SubmissionFailure",
    "TransactionError",
]
