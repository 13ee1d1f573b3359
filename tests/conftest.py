"""Shared pytest fixtures: a controllable quote source and wired-up exchanges."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from config.settings import Settings
from src.core.interfaces import BaseQuoteSource
from src.core.types import Quote
from src.simulator.broker import SimBroker
from src.simulator.ids import SequentialIdAllocator

SYMBOL = "BTC-PERPETUAL"
START = datetime(2024, 1, 2, 0, 0, tzinfo=timezone.utc)


class StubQuoteSource(BaseQuoteSource):
    """Quote source whose current tick is set by the test."""

    def __init__(self, bid: float = 9_999.5, ask: float = 10_000.0) -> None:
        self._step = 0
        self._quote = Quote(timestamp=START, bid=bid, ask=ask, bid_size=5_000, ask_size=7_000)

    def set(self, bid: float, ask: float, bid_size: float = 5_000, ask_size: float = 7_000) -> Quote:
        """Advance the clock one second and publish a new quote."""
        self._step += 1
        self._quote = Quote(
            timestamp=START + timedelta(seconds=self._step),
            bid=bid,
            ask=ask,
            bid_size=bid_size,
            ask_size=ask_size,
        )
        return self._quote

    def get_tick(self) -> Quote:
        return self._quote


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def quotes() -> StubQuoteSource:
    return StubQuoteSource()


@pytest.fixture
def broker(quotes: StubQuoteSource, settings: Settings) -> SimBroker:
    """1 BTC account with the default maker/taker schedule."""
    return SimBroker(
        quotes,
        cash=1.0,
        maker_fee_rate=-0.00025,
        taker_fee_rate=0.00075,
        id_allocator=SequentialIdAllocator(),
        settings=settings,
    )


@pytest.fixture
def feeless_broker(quotes: StubQuoteSource, settings: Settings) -> SimBroker:
    """Same account with zero fees, so balance moves only on realized P&L."""
    return SimBroker(
        quotes,
        cash=1.0,
        maker_fee_rate=0.0,
        taker_fee_rate=0.0,
        id_allocator=SequentialIdAllocator(),
        settings=settings,
    )
