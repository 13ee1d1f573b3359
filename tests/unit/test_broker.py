"""Tests for the exchange facade: construction and read-only queries."""

from __future__ import annotations

import pytest

from config.settings import Settings
from src.core.constants import SYNTHETIC_BOOK_DEPTH
from src.core.exceptions import (
    NotFoundError,
    OrderNotFoundError,
    PositionNotFoundError,
    UnknownCurrencyError,
)
from src.core.types import Direction, OrderStatus, OrderType
from src.simulator.broker import SimBroker
from src.simulator.ids import SequentialIdAllocator, Uuid7Allocator
from tests.conftest import StubQuoteSource

SYMBOL = "BTC-PERPETUAL"


class TestConstruction:
    def test_defaults_come_from_settings(self, quotes: StubQuoteSource) -> None:
        settings = Settings(
            _env_file=None,
            sim_initial_balance=3.0,
            sim_maker_fee_rate=0.0,
            sim_taker_fee_rate=0.001,
            sim_position_size_limit=500,
        )
        broker = SimBroker(quotes, settings=settings)
        assert broker.balance == 3.0
        assert broker.engine.taker_fee_rate == 0.001
        assert broker.engine.position_size_limit == 500

    def test_explicit_arguments_override_settings(
        self, quotes: StubQuoteSource, settings: Settings,
    ) -> None:
        broker = SimBroker(quotes, cash=0.5, taker_fee_rate=0.0, settings=settings)
        assert broker.balance == 0.5
        assert broker.engine.taker_fee_rate == 0.0

    def test_instances_do_not_share_state(
        self, quotes: StubQuoteSource, settings: Settings,
    ) -> None:
        first = SimBroker(quotes, cash=1.0, settings=settings)
        second = SimBroker(quotes, cash=1.0, settings=settings)
        first.place_order(SYMBOL, Direction.BUY, OrderType.MARKET, 0.0, 100)
        assert second.balance == 1.0
        with pytest.raises(PositionNotFoundError):
            second.get_position(SYMBOL)


class TestOrderBook:
    def test_single_synthetic_level(self, broker: SimBroker, quotes: StubQuoteSource) -> None:
        quote = quotes.set(9_990.0, 10_010.0, bid_size=1_200, ask_size=3_400)
        book = broker.get_order_book(SYMBOL, depth=10)
        assert book.timestamp == quote.timestamp
        assert [(lvl.price, lvl.amount) for lvl in book.asks] == [(10_010.0, 3_400)]
        assert [(lvl.price, lvl.amount) for lvl in book.bids] == [(9_990.0, 1_200)]

    def test_default_depth(self, broker: SimBroker) -> None:
        book = broker.get_order_book(SYMBOL)
        assert len(book.asks) == len(book.bids) == SYNTHETIC_BOOK_DEPTH

    def test_rejects_non_positive_depth(self, broker: SimBroker) -> None:
        with pytest.raises(ValueError, match="depth"):
            broker.get_order_book(SYMBOL, depth=0)


class TestAccountSummary:
    def test_flat_account(self, broker: SimBroker) -> None:
        summary = broker.get_account_summary("BTC")
        assert summary.symbol == SYMBOL
        assert summary.balance == 1.0
        assert summary.unrealized_pnl == 0.0
        assert summary.equity == 1.0

    def test_summary_does_not_create_position(self, broker: SimBroker) -> None:
        broker.get_account_summary("ETH")
        with pytest.raises(PositionNotFoundError):
            broker.get_position("ETH-PERPETUAL")

    def test_long_marked_at_ask(
        self, feeless_broker: SimBroker, quotes: StubQuoteSource,
    ) -> None:
        feeless_broker.place_order(SYMBOL, Direction.BUY, OrderType.MARKET, 0.0, 1_000)
        quotes.set(10_999.5, 11_000.0)

        summary = feeless_broker.get_account_summary("btc")
        unrealized = 1_000 * (1 / 10_000 - 1 / 11_000)
        assert summary.currency == "BTC"
        assert summary.unrealized_pnl == pytest.approx(unrealized)
        assert summary.equity == pytest.approx(1.0 + unrealized)
        assert feeless_broker.balance == 1.0

    def test_short_marked_at_bid(
        self, feeless_broker: SimBroker, quotes: StubQuoteSource,
    ) -> None:
        feeless_broker.place_order(SYMBOL, Direction.SELL, OrderType.MARKET, 0.0, 1_000)
        quotes.set(9_000.0, 9_000.5)
        summary = feeless_broker.get_account_summary("BTC")
        assert summary.unrealized_pnl == pytest.approx(1_000 * (1 / 9_000 - 1 / 9_999.5))

    def test_unknown_currency(self, broker: SimBroker) -> None:
        with pytest.raises(UnknownCurrencyError):
            broker.get_account_summary("DOGE")


class TestLookups:
    def test_get_position_unknown_symbol(self, broker: SimBroker) -> None:
        with pytest.raises(PositionNotFoundError):
            broker.get_position("ETH-PERPETUAL")
        with pytest.raises(PositionNotFoundError):
            broker.get_position("ETH-PERPETUAL")

    def test_get_order_unknown_id(self, broker: SimBroker) -> None:
        with pytest.raises(OrderNotFoundError) as exc_info:
            broker.get_order(SYMBOL, "404")
        assert isinstance(exc_info.value, NotFoundError)
        assert broker.get_open_orders(SYMBOL) == []

    def test_get_order_wrong_symbol(self, broker: SimBroker) -> None:
        order = broker.place_order(SYMBOL, Direction.BUY, OrderType.MARKET, 0.0, 100)
        with pytest.raises(OrderNotFoundError):
            broker.get_order("ETH-PERPETUAL", order.order_id)

    def test_snapshots_are_detached(self, broker: SimBroker) -> None:
        order = broker.place_order(SYMBOL, Direction.BUY, OrderType.LIMIT, 9_000.0, 100)
        order.status = OrderStatus.CANCELLED
        position = broker.get_position(SYMBOL)
        position.size = 12_345

        assert broker.get_order(SYMBOL, order.order_id).status == OrderStatus.NEW
        assert broker.get_open_orders(SYMBOL)[0].status == OrderStatus.NEW
        assert broker.get_position(SYMBOL).size == 0

    def test_open_orders_filtered_by_symbol(self, broker: SimBroker) -> None:
        broker.place_order(SYMBOL, Direction.BUY, OrderType.LIMIT, 9_000.0, 100)
        assert broker.get_open_orders("ETH-PERPETUAL") == []
        assert len(broker.get_open_orders(SYMBOL)) == 1


class TestIdAllocators:
    def test_sequential_with_prefix(self) -> None:
        ids = SequentialIdAllocator(start=7, prefix="ord-")
        assert [ids.next_id() for _ in range(3)] == ["ord-7", "ord-8", "ord-9"]

    def test_uuid7_ids_are_unique(self) -> None:
        ids = Uuid7Allocator()
        issued = [ids.next_id() for _ in range(50)]
        assert len(set(issued)) == 50

    def test_default_allocator_used_by_broker(
        self, quotes: StubQuoteSource, settings: Settings,
    ) -> None:
        broker = SimBroker(quotes, cash=1.0, settings=settings)
        order = broker.place_order(SYMBOL, Direction.BUY, OrderType.MARKET, 0.0, 10)
        assert len(order.order_id) == 36
