"""Profit-and-loss calculation for inverse contracts.

Quantities are quoted in USD while PnL, fees and the account balance are
settled in the base currency (BTC / ETH)::

    LONG  pnl = quantity * (1 / entry_price - 1 / exit_price)
    SHORT pnl = quantity * (1 / exit_price  - 1 / entry_price)

    fee = amount / price * fee_rate
"""

from __future__ import annotations

from src.core.logging import get_logger
from src.core.types import Direction, Position, Quote

log = get_logger(__name__)


class PnLCalculator:
    """Stateless calculator for realized / unrealized P&L and fees."""

    # ── Realized P&L ────────────────────────────────────────────

    @staticmethod
    def calculate_pnl(
        side: Direction,
        quantity: float,
        entry_price: float,
        exit_price: float,
    ) -> float:
        """P&L in base currency for closing *quantity* of a *side* position.

        Args:
            side: Side of the position being closed (``BUY`` = long).
            quantity: Unsigned USD amount being closed.
            entry_price: Average entry price of the position.
            exit_price: Price the quantity is closed at.

        Returns:
            Signed P&L; positive is profit.

        Raises:
            ValueError: If either price is non-positive or *quantity* is
                negative.
        """
        if entry_price <= 0 or exit_price <= 0:
            msg = (
                f"PnL prices must be positive, got entry={entry_price} "
                f"exit={exit_price}"
            )
            raise ValueError(msg)
        if quantity < 0:
            msg = f"PnL quantity cannot be negative, got {quantity}"
            raise ValueError(msg)

        if side is Direction.BUY:
            pnl = quantity * (1.0 / entry_price - 1.0 / exit_price)
        else:
            pnl = quantity * (1.0 / exit_price - 1.0 / entry_price)

        log.debug(
            "pnl_calculated",
            side=side.value,
            quantity=quantity,
            entry_price=entry_price,
            exit_price=exit_price,
            pnl=pnl,
        )
        return pnl

    # ── Fees ────────────────────────────────────────────────────

    @staticmethod
    def calculate_fee(amount: float, price: float, fee_rate: float) -> float:
        """Fee in base currency for a fill of *amount* USD at *price*.

        A negative *fee_rate* (maker rebate) yields a negative fee.
        """
        if price <= 0:
            msg = f"Fee price must be positive, got {price}"
            raise ValueError(msg)
        return amount / price * fee_rate

    # ── Unrealized P&L ──────────────────────────────────────────

    @classmethod
    def calculate_unrealized_pnl(cls, position: Position, quote: Quote) -> float:
        """Mark *position* against *quote*: ask if long, bid if short.

        A flat position has no unrealized P&L.
        """
        side = position.side
        if side is None:
            return 0.0
        mark_price = quote.ask if side is Direction.BUY else quote.bid
        return cls.calculate_pnl(side, abs(position.size), position.avg_price, mark_price)
