"""Custom exception hierarchy for the simulated exchange."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from src.core.types import Order


class SimBrokerError(Exception):
    """Base exception for all simulated exchange errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context: dict[str, Any] = context or {}


# ── Order Validation ─────────────────────────────────────────────

class OrderRejectedError(SimBrokerError):
    """Order failed validation; no account or position state was changed.

    The rejected order is still recorded for audit and a snapshot of it is
    available as :attr:`order` once the engine has filed it.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message, context)
        self.order: Order | None = None


class InvalidOrderSizeError(OrderRejectedError):
    """Amount is non-positive or not a multiple of the contract size."""


class InvalidPriceError(OrderRejectedError):
    """Limit price is missing or non-positive."""


class PositionLimitError(OrderRejectedError):
    """Fill would push |position size| past the position size limit."""


class InsufficientMarginError(OrderRejectedError):
    """Order amount exceeds the leverage cap against the current balance."""


class UnsupportedOrderTypeError(OrderRejectedError):
    """Order type is recognised but cannot be matched by this engine."""


class PostOnlyRejectedError(OrderRejectedError):
    """Post-only order would have taken liquidity."""


class ReduceOnlyRejectedError(OrderRejectedError):
    """Reduce-only order would increase or flip the position."""


# ── Lookups ──────────────────────────────────────────────────────

class NotFoundError(SimBrokerError):
    """Requested record does not exist."""


class OrderNotFoundError(NotFoundError):
    """No order with the given id."""


class PositionNotFoundError(NotFoundError):
    """No position record for the given symbol."""


class UnknownCurrencyError(NotFoundError):
    """Currency has no default instrument."""


class OrderNotOpenError(NotFoundError):
    """No open order with the given id; it is unknown or already terminal."""


# ── Internal Invariants ──────────────────────────────────────────

class InvariantViolationError(SimBrokerError):
    """Internal bookkeeping reached a state its callers should never produce."""


class MissingPositionError(InvariantViolationError):
    """Position update referenced a symbol with no position record."""


class DirectionMismatchError(InvariantViolationError):
    """Position delta was routed to the wrong add/close branch."""


class NoPositionToCloseError(InvariantViolationError):
    """Close was requested against a flat position."""
