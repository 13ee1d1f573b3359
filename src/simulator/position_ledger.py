"""Position ledger — signed size and cost-weighted entry price per symbol.

Positions are inverse contracts: size is in USD, cost is in base currency,
so the average entry price is the harmonic mean of fill prices weighted by
size::

    avg_price = total_size / (size_1 / price_1 + size_2 / price_2 + ...)

Every change is appended to an immutable audit trail.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from uuid_extensions import uuid7

from src.core.exceptions import (
    DirectionMismatchError,
    MissingPositionError,
    NoPositionToCloseError,
    PositionNotFoundError,
)
from src.core.logging import get_logger
from src.core.types import Position
from src.simulator.pnl_calculator import PnLCalculator

log = get_logger(__name__)

_ACTIONS = frozenset({"OPEN", "ADD", "REDUCE", "CLOSE", "FLIP"})


# ── Position Change Record ──────────────────────────────────────


@dataclass(frozen=True)
class PositionChangeRecord:
    """Immutable record of a single position change event."""

    record_id: str
    timestamp: datetime | None
    symbol: str
    action: str  # "OPEN" | "ADD" | "REDUCE" | "CLOSE" | "FLIP"
    size_delta: float
    price: float
    avg_price_before: float
    avg_price_after: float
    size_after: float
    realized_pnl: float

    def __post_init__(self) -> None:
        if self.action not in _ACTIONS:
            msg = f"Invalid position change action: {self.action}"
            raise ValueError(msg)
        if not self.symbol:
            msg = "PositionChangeRecord symbol must not be empty"
            raise ValueError(msg)


# ── Position Ledger ─────────────────────────────────────────────


class PositionLedger:
    """Owns one :class:`Position` per symbol and applies signed deltas.

    Positions are created lazily via :meth:`ensure_position` and never
    deleted; a fully closed position is reset to ``size=0, avg_price=0``.
    Realized P&L is returned to the caller rather than booked here.
    """

    def __init__(self, pnl_calculator: PnLCalculator | None = None) -> None:
        self._pnl = pnl_calculator or PnLCalculator()
        self._positions: dict[str, Position] = {}
        self._history: list[PositionChangeRecord] = []

    # ── Lookups ─────────────────────────────────────────────────

    def ensure_position(self, symbol: str) -> Position:
        """Return the live position for *symbol*, creating a flat one if needed."""
        position = self._positions.get(symbol)
        if position is None:
            position = Position(symbol=symbol)
            self._positions[symbol] = position
            log.debug("position_created", symbol=symbol)
        return position

    def get_position(self, symbol: str) -> Position:
        """Return the live position for *symbol*.

        Raises:
            PositionNotFoundError: If no record exists.  Never creates one.
        """
        position = self._positions.get(symbol)
        if position is None:
            raise PositionNotFoundError(
                f"Position not found: {symbol}",
                context={"symbol": symbol},
            )
        return position

    def has_position(self, symbol: str) -> bool:
        return symbol in self._positions

    def peek_position(self, symbol: str) -> Position:
        """Return the live position, or a detached flat one if none exists yet."""
        position = self._positions.get(symbol)
        if position is None:
            return Position(symbol=symbol)
        return position

    def get_history(self) -> list[PositionChangeRecord]:
        """Return the full audit trail of position changes (defensive copy)."""
        return list(self._history)

    # ── Updates ─────────────────────────────────────────────────

    def update_position(
        self,
        symbol: str,
        size: float,
        price: float,
        timestamp: datetime | None = None,
    ) -> float:
        """Apply a signed *size* delta filled at *price*.

        Dispatches to :meth:`close_position` when *size* opposes the
        current position and to :meth:`add_position` otherwise.

        Returns:
            Realized P&L produced by the change (0.0 for additions).

        Raises:
            MissingPositionError: If *symbol* has no position record.
        """
        position = self._positions.get(symbol)
        if position is None:
            log.error("position_missing_on_update", symbol=symbol, size=size, price=price)
            raise MissingPositionError(
                f"No position record for {symbol}; positions must exist before matching",
                context={"symbol": symbol, "size": size, "price": price},
            )

        if position.size > 0 and size < 0 or position.size < 0 and size > 0:
            return self.close_position(position, size, price, timestamp)
        self.add_position(position, size, price, timestamp)
        return 0.0

    def add_position(
        self,
        position: Position,
        size: float,
        price: float,
        timestamp: datetime | None = None,
    ) -> None:
        """Grow *position* by *size*, recomputing the cost-weighted average price.

        Raises:
            DirectionMismatchError: If *size* opposes the current position.
        """
        if position.size < 0 and size > 0 or position.size > 0 and size < 0:
            log.error(
                "add_position_direction_mismatch",
                symbol=position.symbol,
                position_size=position.size,
                size=size,
            )
            raise DirectionMismatchError(
                f"Cannot add {size} to {position.symbol} position of {position.size}",
                context={"symbol": position.symbol, "position_size": position.size, "size": size},
            )

        old_avg = position.avg_price
        opening = position.size == 0

        position_cost = 0.0
        if not opening and old_avg != 0:
            position_cost = abs(position.size) / old_avg
        new_cost = abs(size) / price

        total_size = abs(position.size) + abs(size)
        position.avg_price = total_size / (position_cost + new_cost)
        position.size += size
        if opening:
            position.open_time = timestamp

        self._record(
            symbol=position.symbol,
            action="OPEN" if opening else "ADD",
            timestamp=timestamp,
            size_delta=size,
            price=price,
            avg_price_before=old_avg,
            avg_price_after=position.avg_price,
            size_after=position.size,
            realized_pnl=0.0,
        )
        log.info(
            "position_opened" if opening else "position_added",
            symbol=position.symbol,
            size_delta=size,
            price=price,
            avg_price=position.avg_price,
            size=position.size,
        )

    def close_position(
        self,
        position: Position,
        size: float,
        price: float,
        timestamp: datetime | None = None,
    ) -> float:
        """Reduce, close, or flip *position* with an opposing *size*.

        Returns:
            Realized P&L on the closed quantity.

        Raises:
            NoPositionToCloseError: If *position* is flat.
            DirectionMismatchError: If *size* has the same sign as the position.
        """
        if position.size == 0:
            log.error("close_position_flat", symbol=position.symbol, size=size)
            raise NoPositionToCloseError(
                f"No {position.symbol} position to close",
                context={"symbol": position.symbol, "size": size},
            )
        if position.size > 0 and size > 0 or position.size < 0 and size < 0:
            log.error(
                "close_position_direction_mismatch",
                symbol=position.symbol,
                position_size=position.size,
                size=size,
            )
            raise DirectionMismatchError(
                f"Cannot close {position.symbol} position of {position.size} with {size}",
                context={"symbol": position.symbol, "position_size": position.size, "size": size},
            )

        side = position.side
        assert side is not None  # non-flat checked above
        old_avg = position.avg_price
        remaining = abs(size) - abs(position.size)

        if remaining > 0:
            # Over-close: realize the whole prior position, open the rest at price
            realized = self._pnl.calculate_pnl(side, abs(position.size), old_avg, price)
            position.avg_price = price
            position.size += size
            position.open_time = timestamp
            action = "FLIP"
        elif remaining == 0:
            realized = self._pnl.calculate_pnl(side, abs(size), old_avg, price)
            position.avg_price = 0.0
            position.size = 0.0
            position.open_time = None
            action = "CLOSE"
        else:
            realized = self._pnl.calculate_pnl(side, abs(size), old_avg, price)
            position.size += size
            action = "REDUCE"

        self._record(
            symbol=position.symbol,
            action=action,
            timestamp=timestamp,
            size_delta=size,
            price=price,
            avg_price_before=old_avg,
            avg_price_after=position.avg_price,
            size_after=position.size,
            realized_pnl=realized,
        )
        log.info(
            "position_reduced",
            symbol=position.symbol,
            action=action,
            size_delta=size,
            price=price,
            realized_pnl=realized,
            avg_price=position.avg_price,
            size=position.size,
        )
        return realized

    # ── Internal ────────────────────────────────────────────────

    def _record(
        self,
        *,
        symbol: str,
        action: str,
        timestamp: datetime | None,
        size_delta: float,
        price: float,
        avg_price_before: float,
        avg_price_after: float,
        size_after: float,
        realized_pnl: float,
    ) -> None:
        """Append an immutable change record to the history."""
        self._history.append(
            PositionChangeRecord(
                record_id=str(uuid7()),
                timestamp=timestamp,
                symbol=symbol,
                action=action,
                size_delta=size_delta,
                price=price,
                avg_price_before=avg_price_before,
                avg_price_after=avg_price_after,
                size_after=size_after,
                realized_pnl=realized_pnl,
            )
        )
