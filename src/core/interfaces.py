"""Abstract base classes — collaborators the exchange consumes but does not own."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.core.types import Quote


class BaseQuoteSource(ABC):
    """Interface for the market-data feed supplying the current quote."""

    @abstractmethod
    def get_tick(self) -> Quote:
        """Return the latest known quote.  Must not block."""
        ...


class BaseIdAllocator(ABC):
    """Interface for order identity allocation."""

    @abstractmethod
    def next_id(self) -> str:
        """Return an id never handed out before in this process."""
        ...
