"""System-wide shared types — the single source of truth for all data structures."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


# ── Enums ────────────────────────────────────────────────────────

class Direction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @property
    def sign(self) -> int:
        """+1 for buys, -1 for sells; multiply an unsigned amount by this."""
        return 1 if self is Direction.BUY else -1


class OrderType(str, Enum):
    MARKET = "MARKET"
    LIMIT = "LIMIT"
    STOP_MARKET = "STOP_MARKET"   # recognised, not matched
    STOP_LIMIT = "STOP_LIMIT"     # recognised, not matched


class OrderStatus(str, Enum):
    NEW = "NEW"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


_OPEN_STATUSES = frozenset({OrderStatus.NEW, OrderStatus.PARTIALLY_FILLED})


# ── Market Data Types ────────────────────────────────────────────

@dataclass(frozen=True)
class Quote:
    """Top-of-book snapshot supplied by the quote source."""

    timestamp: datetime
    bid: float
    ask: float
    bid_size: float = 0.0
    ask_size: float = 0.0

    def __post_init__(self) -> None:
        if self.bid <= 0 or self.ask <= 0:
            msg = f"Quote prices must be positive, got bid={self.bid} ask={self.ask}"
            raise ValueError(msg)
        if self.bid > self.ask:
            msg = f"Quote is crossed: bid={self.bid} > ask={self.ask}"
            raise ValueError(msg)
        if self.bid_size < 0 or self.ask_size < 0:
            msg = (
                f"Quote sizes cannot be negative, got "
                f"bid_size={self.bid_size} ask_size={self.ask_size}"
            )
            raise ValueError(msg)

    def price_for(self, direction: Direction) -> float:
        """Price a taker pays: the ask for buys, the bid for sells."""
        return self.ask if direction is Direction.BUY else self.bid


@dataclass(frozen=True)
class OrderBookLevel:
    price: float
    amount: float


@dataclass(frozen=True)
class OrderBook:
    """Synthetic book built from a single quote: at most one level per side."""

    symbol: str
    timestamp: datetime
    asks: list[OrderBookLevel] = field(default_factory=list)
    bids: list[OrderBookLevel] = field(default_factory=list)


# ── Order Types ──────────────────────────────────────────────────

@dataclass
class Order:
    """Single order tracked by the exchange.

    ``price`` is only meaningful for limit orders.  ``amount`` is the
    unsigned requested size in USD; ``direction`` carries the sign.
    """

    order_id: str
    symbol: str
    direction: Direction
    order_type: OrderType
    amount: float
    price: float = 0.0
    avg_price: float = 0.0
    filled_amount: float = 0.0
    post_only: bool = False
    reduce_only: bool = False
    status: OrderStatus = OrderStatus.NEW
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.order_id:
            msg = "Order order_id must not be empty"
            raise ValueError(msg)
        if not self.symbol:
            msg = "Order symbol must not be empty"
            raise ValueError(msg)

    @property
    def is_open(self) -> bool:
        return self.status in _OPEN_STATUSES

    @property
    def is_terminal(self) -> bool:
        return not self.is_open

    @property
    def signed_amount(self) -> float:
        return self.direction.sign * self.amount

    def snapshot(self) -> Order:
        """Detached copy safe to hand to callers."""
        return replace(self)


# ── Position & Account Types ─────────────────────────────────────

@dataclass
class Position:
    """Signed position in a single instrument.

    ``size`` > 0 is long, < 0 is short, 0 is flat.  ``avg_price`` is 0
    whenever the position is flat.
    """

    symbol: str
    size: float = 0.0
    avg_price: float = 0.0
    open_time: datetime | None = None

    @property
    def side(self) -> Direction | None:
        if self.size > 0:
            return Direction.BUY
        if self.size < 0:
            return Direction.SELL
        return None

    @property
    def is_flat(self) -> bool:
        return self.size == 0

    def snapshot(self) -> Position:
        return replace(self)


@dataclass(frozen=True)
class AccountSummary:
    """Balance plus mark-to-market of the currency's default instrument."""

    currency: str
    symbol: str
    balance: float
    unrealized_pnl: float
    equity: float
