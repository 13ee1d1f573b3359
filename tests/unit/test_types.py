"""Tests for core type definitions."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.core.types import (
    Direction,
    Order,
    OrderStatus,
    OrderType,
    Position,
    Quote,
)

TS = datetime(2024, 1, 2, tzinfo=timezone.utc)


class TestQuote:
    def test_valid_quote(self) -> None:
        quote = Quote(timestamp=TS, bid=99.5, ask=100.0, bid_size=10, ask_size=20)
        assert quote.price_for(Direction.BUY) == 100.0
        assert quote.price_for(Direction.SELL) == 99.5

    def test_rejects_non_positive_price(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            Quote(timestamp=TS, bid=0.0, ask=100.0)

    def test_rejects_crossed_quote(self) -> None:
        with pytest.raises(ValueError, match="crossed"):
            Quote(timestamp=TS, bid=101.0, ask=100.0)

    def test_rejects_negative_size(self) -> None:
        with pytest.raises(ValueError, match="negative"):
            Quote(timestamp=TS, bid=99.0, ask=100.0, ask_size=-1)

    def test_quote_is_frozen(self) -> None:
        quote = Quote(timestamp=TS, bid=99.0, ask=100.0)
        with pytest.raises(AttributeError):
            quote.bid = 98.0  # type: ignore[misc]


class TestDirection:
    def test_sign(self) -> None:
        assert Direction.BUY.sign == 1
        assert Direction.SELL.sign == -1


class TestOrder:
    def _order(self, **overrides: object) -> Order:
        fields: dict[str, object] = {
            "order_id": "1",
            "symbol": "BTC-PERPETUAL",
            "direction": Direction.SELL,
            "order_type": OrderType.LIMIT,
            "amount": 50.0,
            "price": 101.0,
        }
        fields.update(overrides)
        return Order(**fields)  # type: ignore[arg-type]

    def test_new_order_is_open(self) -> None:
        order = self._order()
        assert order.status == OrderStatus.NEW
        assert order.is_open
        assert not order.is_terminal

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.FILLED, OrderStatus.CANCELLED, OrderStatus.REJECTED],
    )
    def test_terminal_statuses(self, status: OrderStatus) -> None:
        assert self._order(status=status).is_terminal

    def test_partially_filled_is_open(self) -> None:
        assert self._order(status=OrderStatus.PARTIALLY_FILLED).is_open

    def test_signed_amount(self) -> None:
        assert self._order().signed_amount == -50.0
        assert self._order(direction=Direction.BUY).signed_amount == 50.0

    def test_snapshot_is_detached(self) -> None:
        order = self._order()
        snap = order.snapshot()
        snap.status = OrderStatus.CANCELLED
        assert order.status == OrderStatus.NEW

    def test_rejects_empty_id(self) -> None:
        with pytest.raises(ValueError, match="order_id"):
            self._order(order_id="")


class TestPosition:
    def test_side(self) -> None:
        assert Position("BTC-PERPETUAL", size=10, avg_price=100).side == Direction.BUY
        assert Position("BTC-PERPETUAL", size=-10, avg_price=100).side == Direction.SELL
        assert Position("BTC-PERPETUAL").side is None

    def test_flat_by_default(self) -> None:
        position = Position("BTC-PERPETUAL")
        assert position.is_flat
        assert position.avg_price == 0.0
        assert position.open_time is None
