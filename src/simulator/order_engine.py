"""Matching engine — executes orders against the current top-of-book quote.

Market orders fill immediately and in full as takers, or are rejected::

    BUY  price = ask        SELL price = bid
    fee        = amount / price * taker_fee_rate
    max_amount = balance * max_leverage * price

Limit orders use resting-order semantics:

* marketable on arrival (buy >= ask, sell <= bid): filled at once as a
  taker at the quote price, or rejected if ``post_only``;
* otherwise they rest as ``NEW`` and are re-checked on every
  :meth:`MatchingEngine.on_tick`, in submission order.  The first tick on
  which one becomes marketable fills it in full at its limit price, paying
  the maker fee.

No order is ever partially filled.
"""

from __future__ import annotations

import math
from datetime import datetime

from src.core.constants import (
    CONTRACT_SIZE,
    DEFAULT_MAKER_FEE_RATE,
    DEFAULT_TAKER_FEE_RATE,
    MAX_LEVERAGE,
    POSITION_SIZE_LIMIT,
)
from src.core.exceptions import (
    InsufficientMarginError,
    InvalidOrderSizeError,
    InvalidPriceError,
    InvariantViolationError,
    OrderNotFoundError,
    OrderNotOpenError,
    OrderRejectedError,
    PositionLimitError,
    PostOnlyRejectedError,
    ReduceOnlyRejectedError,
    UnsupportedOrderTypeError,
)
from src.core.interfaces import BaseIdAllocator, BaseQuoteSource
from src.core.logging import get_logger
from src.core.types import (
    Direction,
    Order,
    OrderStatus,
    OrderType,
    Position,
    Quote,
)
from src.simulator.account import PnLAccountant
from src.simulator.ids import Uuid7Allocator
from src.simulator.order_registry import OrderRegistry
from src.simulator.pnl_calculator import PnLCalculator
from src.simulator.position_ledger import PositionLedger

log = get_logger(__name__)


class MatchingEngine:
    """Validates, prices and fills orders, routing the results to the ledgers.

    The engine owns no state of its own beyond its configuration; positions,
    balance and orders live in the collaborators passed in.

    Args:
        quote_source: Supplies the current quote, read once per call.
        ledger: Position ledger receiving signed fill deltas.
        accountant: Account receiving fees and realized P&L.
        registry: Order registry receiving every order, accepted or not.
        id_allocator: Order id source.  Defaults to UUIDv7.
        maker_fee_rate: Fee rate for resting limit fills.
        taker_fee_rate: Fee rate for market and marketable limit fills.
        contract_size: Amounts must be a multiple of this.
        position_size_limit: Max |position size| after any fill.
        max_leverage: Order amount cap as a multiple of ``balance * price``.
    """

    def __init__(
        self,
        quote_source: BaseQuoteSource,
        ledger: PositionLedger,
        accountant: PnLAccountant,
        registry: OrderRegistry,
        id_allocator: BaseIdAllocator | None = None,
        *,
        maker_fee_rate: float = DEFAULT_MAKER_FEE_RATE,
        taker_fee_rate: float = DEFAULT_TAKER_FEE_RATE,
        contract_size: int = CONTRACT_SIZE,
        position_size_limit: float = POSITION_SIZE_LIMIT,
        max_leverage: float = MAX_LEVERAGE,
    ) -> None:
        self._quotes = quote_source
        self._ledger = ledger
        self._account = accountant
        self._registry = registry
        self._ids = id_allocator or Uuid7Allocator()
        self._pnl = PnLCalculator()

        self.maker_fee_rate = maker_fee_rate
        self.taker_fee_rate = taker_fee_rate
        self.contract_size = contract_size
        self.position_size_limit = position_size_limit
        self.max_leverage = max_leverage

    # ── Public API ──────────────────────────────────────────────

    def place_order(
        self,
        symbol: str,
        direction: Direction,
        order_type: OrderType,
        price: float,
        amount: float,
        post_only: bool = False,
        reduce_only: bool = False,
    ) -> Order:
        """Create an order, match it, and file it with the registry.

        Returns:
            Snapshot of the order after matching: ``FILLED`` for executed
            orders, ``NEW`` for resting limit orders.

        Raises:
            OrderRejectedError: On any validation failure.  The order is
                still filed as ``REJECTED`` and its snapshot is attached to
                the exception as ``order``.
            InvariantViolationError: If position bookkeeping is
                inconsistent.  The order is filed as ``REJECTED``.
        """
        quote = self._quotes.get_tick()
        order = Order(
            order_id=self._ids.next_id(),
            symbol=symbol,
            direction=direction,
            order_type=order_type,
            amount=amount,
            price=price,
            post_only=post_only,
            reduce_only=reduce_only,
            status=OrderStatus.NEW,
            created_at=quote.timestamp,
            updated_at=quote.timestamp,
        )

        try:
            self._match_order(order, quote)
        except OrderRejectedError as exc:
            order.status = OrderStatus.REJECTED
            self._registry.file(order)
            exc.order = order.snapshot()
            log.warning(
                "order_rejected",
                order_id=order.order_id,
                symbol=symbol,
                direction=direction.value,
                order_type=order_type.value,
                amount=amount,
                price=price,
                reason=str(exc),
            )
            raise
        except InvariantViolationError:
            order.status = OrderStatus.REJECTED
            self._registry.file(order)
            log.error("order_invariant_violation", order_id=order.order_id, symbol=symbol)
            raise

        # position record exists only once an order has been accepted
        self._ledger.ensure_position(symbol)
        self._registry.file(order)
        return order.snapshot()

    def on_tick(self) -> list[Order]:
        """Re-evaluate resting limit orders against the latest quote.

        Orders are visited in submission order.  An order that has become
        marketable fills in full at its limit price as a maker; if the fill
        would break reduce-only, the position limit or the margin cap at
        that moment, the order is cancelled instead.

        Returns:
            Snapshots of the orders that changed status on this tick.

        Raises:
            InvariantViolationError: If position bookkeeping failed for any
                order.  The remaining orders are still evaluated first; the
                failing order is left open and untouched.
        """
        quote = self._quotes.get_tick()
        changed: list[Order] = []
        failures: list[InvariantViolationError] = []

        for order in self._registry.open_orders():
            if order.order_type is not OrderType.LIMIT:
                continue
            if not self._is_marketable(order, quote):
                continue

            position = self._ledger.peek_position(order.symbol)
            try:
                self._check_reduce_only(order, position)
                self._check_position_limit(order, position)
                self._check_margin(order, order.price)
            except OrderRejectedError as exc:
                order.status = OrderStatus.CANCELLED
                order.updated_at = quote.timestamp
                log.warning(
                    "resting_order_cancelled",
                    order_id=order.order_id,
                    symbol=order.symbol,
                    reason=str(exc),
                )
            else:
                try:
                    self._fill(order, order.price, self.maker_fee_rate, quote.timestamp)
                except InvariantViolationError as exc:
                    log.error(
                        "resting_order_invariant_violation",
                        order_id=order.order_id,
                        symbol=order.symbol,
                        reason=str(exc),
                    )
                    failures.append(exc)
                    continue

            self._registry.refile(order)
            changed.append(order.snapshot())

        if failures:
            raise failures[0]
        return changed

    def cancel_order(self, symbol: str, order_id: str) -> Order:
        """Cancel a resting order.

        Raises:
            OrderNotFoundError: If no order with *order_id* exists for *symbol*.
            OrderNotOpenError: If the order is already terminal.
        """
        order = self._registry.get(order_id)
        if order.symbol != symbol:
            raise OrderNotFoundError(
                f"Order not found: {order_id} ({symbol})",
                context={"symbol": symbol, "order_id": order_id},
            )
        if not order.is_open:
            raise OrderNotOpenError(
                f"Order {order_id} is already {order.status.value}",
                context={"order_id": order_id, "status": order.status.value},
            )

        self._cancel(order, self._quotes.get_tick().timestamp)
        return order.snapshot()

    def cancel_all_orders(self, symbol: str) -> list[Order]:
        """Cancel every resting order for *symbol*; returns their snapshots."""
        timestamp = self._quotes.get_tick().timestamp
        cancelled = []
        for order in self._registry.open_orders(symbol):
            self._cancel(order, timestamp)
            cancelled.append(order.snapshot())
        return cancelled

    # ── Dispatch ────────────────────────────────────────────────

    def _match_order(self, order: Order, quote: Quote) -> None:
        if order.order_type is OrderType.MARKET:
            self._match_market_order(order, quote)
        elif order.order_type is OrderType.LIMIT:
            self._match_limit_order(order, quote)
        else:
            raise UnsupportedOrderTypeError(
                f"Order type {order.order_type.value} is not supported",
                context={"order_type": order.order_type.value},
            )

    def _match_market_order(self, order: Order, quote: Quote) -> None:
        self._check_amount(order)
        if order.post_only:
            raise PostOnlyRejectedError(
                "Post-only is not allowed on market orders",
                context={"order_type": order.order_type.value},
            )

        position = self._ledger.peek_position(order.symbol)
        self._check_reduce_only(order, position)
        self._check_position_limit(order, position)

        price = quote.price_for(order.direction)
        self._check_margin(order, price)
        self._fill(order, price, self.taker_fee_rate, quote.timestamp)

    def _match_limit_order(self, order: Order, quote: Quote) -> None:
        self._check_amount(order)
        if not math.isfinite(order.price) or order.price <= 0:
            raise InvalidPriceError(
                f"Limit price must be positive and finite, got {order.price}",
                context={"price": order.price},
            )

        position = self._ledger.peek_position(order.symbol)
        marketable = self._is_marketable(order, quote)
        if marketable and order.post_only:
            raise PostOnlyRejectedError(
                f"Post-only {order.direction.value} at {order.price} would cross "
                f"the market (bid={quote.bid} ask={quote.ask})",
                context={"price": order.price, "bid": quote.bid, "ask": quote.ask},
            )

        self._check_reduce_only(order, position)
        self._check_position_limit(order, position)

        if marketable:
            price = quote.price_for(order.direction)
            self._check_margin(order, price)
            self._fill(order, price, self.taker_fee_rate, quote.timestamp)
            return

        self._check_margin(order, order.price)
        log.info(
            "limit_order_resting",
            order_id=order.order_id,
            symbol=order.symbol,
            direction=order.direction.value,
            price=order.price,
            amount=order.amount,
        )

    # ── Checks ──────────────────────────────────────────────────

    def _check_amount(self, order: Order) -> None:
        amount = order.amount
        if (
            not math.isfinite(amount)
            or amount <= 0
            or amount != int(amount)
            or int(amount) % self.contract_size != 0
        ):
            raise InvalidOrderSizeError(
                f"Invalid size {amount} - not multiple of contract size "
                f"({self.contract_size})",
                context={"amount": amount, "contract_size": self.contract_size},
            )

    def _check_reduce_only(self, order: Order, position: Position) -> None:
        if not order.reduce_only:
            return
        side = position.side
        if side is None or side is order.direction or order.amount > abs(position.size):
            raise ReduceOnlyRejectedError(
                f"Reduce-only {order.direction.value} {order.amount} would not reduce "
                f"{position.symbol} position of {position.size}",
                context={"amount": order.amount, "position_size": position.size},
            )

    def _check_position_limit(self, order: Order, position: Position) -> None:
        new_size = position.size + order.signed_amount
        if abs(new_size) > self.position_size_limit:
            raise PositionLimitError(
                f"Rejected, maximum size of future position is {self.position_size_limit}",
                context={
                    "position_size": position.size,
                    "amount": order.signed_amount,
                    "limit": self.position_size_limit,
                },
            )

    def _check_margin(self, order: Order, price: float) -> None:
        max_amount = self._account.balance * self.max_leverage * price
        if order.amount > max_amount:
            raise InsufficientMarginError(
                f"Rejected, maximum order size at current balance is {max_amount}",
                context={
                    "amount": order.amount,
                    "max_amount": max_amount,
                    "balance": self._account.balance,
                    "price": price,
                },
            )

    @staticmethod
    def _is_marketable(order: Order, quote: Quote) -> bool:
        if order.direction is Direction.BUY:
            return order.price >= quote.ask
        return order.price <= quote.bid

    # ── State Changes ───────────────────────────────────────────

    def _fill(
        self,
        order: Order,
        price: float,
        fee_rate: float,
        timestamp: datetime,
    ) -> None:
        """Fill *order* in full at *price*, booking the fee and any realized P&L."""
        fee = self._pnl.calculate_fee(order.amount, price, fee_rate)
        self._ledger.ensure_position(order.symbol)
        realized = self._ledger.update_position(
            order.symbol, order.signed_amount, price, timestamp,
        )
        self._account.charge_fee(fee)
        self._account.add_pnl(realized)

        order.filled_amount = order.amount
        order.avg_price = price
        order.status = OrderStatus.FILLED
        order.updated_at = timestamp

        log.info(
            "order_filled",
            order_id=order.order_id,
            symbol=order.symbol,
            direction=order.direction.value,
            order_type=order.order_type.value,
            amount=order.amount,
            price=price,
            fee=fee,
            realized_pnl=realized,
            balance=self._account.balance,
        )

    def _cancel(self, order: Order, timestamp: datetime) -> None:
        order.status = OrderStatus.CANCELLED
        order.updated_at = timestamp
        self._registry.refile(order)
        log.info("order_cancelled", order_id=order.order_id, symbol=order.symbol)
