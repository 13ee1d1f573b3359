"""Simulated exchange facade.

Wires the matching engine to its ledgers for one explicitly constructed
account and exposes the operations a backtest driver calls::

    broker = SimBroker(quote_source, cash=1.0)
    broker.place_order("BTC-PERPETUAL", Direction.BUY, OrderType.MARKET, 0, 100)
    broker.on_tick()                      # after every quote update
    summary = broker.get_account_summary("BTC")

Nothing here is shared between instances, so several brokers can run side
by side.  A single instance is not thread-safe; callers must serialize
access.
"""

from __future__ import annotations

from config.settings import Settings, get_settings
from src.core.constants import CURRENCY_SYMBOLS, SYNTHETIC_BOOK_DEPTH
from src.core.exceptions import OrderNotFoundError, UnknownCurrencyError
from src.core.interfaces import BaseIdAllocator, BaseQuoteSource
from src.core.logging import get_logger
from src.core.types import (
    AccountSummary,
    Direction,
    Order,
    OrderBook,
    OrderBookLevel,
    OrderType,
    Position,
)
from src.simulator.account import PnLAccountant
from src.simulator.order_engine import MatchingEngine
from src.simulator.order_registry import OrderRegistry
from src.simulator.pnl_calculator import PnLCalculator
from src.simulator.position_ledger import PositionLedger

log = get_logger(__name__)


class SimBroker:
    """Single-account simulated inverse-perpetual exchange.

    Args:
        quote_source: Market-data feed supplying the current quote.
        cash: Starting balance in base currency.  Defaults to settings.
        maker_fee_rate: Defaults to settings.
        taker_fee_rate: Defaults to settings.
        id_allocator: Order id source.  Defaults to UUIDv7.
        settings: Settings instance; the process-wide one if omitted.
    """

    def __init__(
        self,
        quote_source: BaseQuoteSource,
        cash: float | None = None,
        maker_fee_rate: float | None = None,
        taker_fee_rate: float | None = None,
        id_allocator: BaseIdAllocator | None = None,
        settings: Settings | None = None,
    ) -> None:
        cfg = settings or get_settings()
        pnl_calculator = PnLCalculator()

        self._quotes = quote_source
        self._ledger = PositionLedger(pnl_calculator)
        self._account = PnLAccountant(
            cfg.sim_initial_balance if cash is None else cash,
            pnl_calculator,
        )
        self._registry = OrderRegistry()
        self._engine = MatchingEngine(
            quote_source,
            self._ledger,
            self._account,
            self._registry,
            id_allocator,
            maker_fee_rate=cfg.sim_maker_fee_rate if maker_fee_rate is None else maker_fee_rate,
            taker_fee_rate=cfg.sim_taker_fee_rate if taker_fee_rate is None else taker_fee_rate,
            contract_size=cfg.sim_contract_size,
            position_size_limit=cfg.sim_position_size_limit,
            max_leverage=cfg.sim_max_leverage,
        )

        log.info(
            "sim_broker_initialized",
            balance=self._account.balance,
            maker_fee_rate=self._engine.maker_fee_rate,
            taker_fee_rate=self._engine.taker_fee_rate,
        )

    # ── Components ──────────────────────────────────────────────

    @property
    def engine(self) -> MatchingEngine:
        return self._engine

    @property
    def ledger(self) -> PositionLedger:
        return self._ledger

    @property
    def account(self) -> PnLAccountant:
        return self._account

    @property
    def balance(self) -> float:
        return self._account.balance

    # ── Trading ─────────────────────────────────────────────────

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
        """Submit an order; see :meth:`MatchingEngine.place_order`."""
        return self._engine.place_order(
            symbol, direction, order_type, price, amount, post_only, reduce_only,
        )

    def cancel_order(self, symbol: str, order_id: str) -> Order:
        return self._engine.cancel_order(symbol, order_id)

    def cancel_all_orders(self, symbol: str) -> list[Order]:
        return self._engine.cancel_all_orders(symbol)

    def on_tick(self) -> list[Order]:
        """Call after each quote update so resting limit orders can fill."""
        return self._engine.on_tick()

    # ── Queries ─────────────────────────────────────────────────

    def get_order_book(self, symbol: str, depth: int = SYNTHETIC_BOOK_DEPTH) -> OrderBook:
        """Synthetic book with one level per side taken from the current quote.

        *depth* is accepted for interface compatibility; the quote only
        ever provides ``SYNTHETIC_BOOK_DEPTH`` levels per side.
        """
        if depth < 1:
            msg = f"depth must be at least 1, got {depth}"
            raise ValueError(msg)
        quote = self._quotes.get_tick()
        return OrderBook(
            symbol=symbol,
            timestamp=quote.timestamp,
            asks=[OrderBookLevel(price=quote.ask, amount=quote.ask_size)],
            bids=[OrderBookLevel(price=quote.bid, amount=quote.bid_size)],
        )

    def get_account_summary(self, currency: str) -> AccountSummary:
        """Balance, unrealized P&L and equity for *currency*'s default instrument.

        Raises:
            UnknownCurrencyError: If *currency* has no default instrument.
        """
        symbol = CURRENCY_SYMBOLS.get(currency.upper())
        if symbol is None:
            raise UnknownCurrencyError(
                f"No instrument for currency {currency}",
                context={"currency": currency},
            )

        position = self._ledger.peek_position(symbol)
        quote = self._quotes.get_tick()
        unrealized = self._account.unrealized_pnl(position, quote)
        balance = self._account.balance
        return AccountSummary(
            currency=currency.upper(),
            symbol=symbol,
            balance=balance,
            unrealized_pnl=unrealized,
            equity=balance + unrealized,
        )

    def get_open_orders(self, symbol: str) -> list[Order]:
        return [o.snapshot() for o in self._registry.open_orders(symbol)]

    def get_order(self, symbol: str, order_id: str) -> Order:
        """Look up an order by id.

        Raises:
            OrderNotFoundError: If the id is unknown or belongs to another symbol.
        """
        order = self._registry.get(order_id)
        if order.symbol != symbol:
            raise OrderNotFoundError(
                f"Order not found: {order_id} ({symbol})",
                context={"symbol": symbol, "order_id": order_id},
            )
        return order.snapshot()

    def get_position(self, symbol: str) -> Position:
        """Snapshot of the position for *symbol*.

        Raises:
            PositionNotFoundError: If the symbol has never been traded.
        """
        return self._ledger.get_position(symbol).snapshot()
