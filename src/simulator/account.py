"""Cash balance accounting.

The account holds a single balance in base currency.  Fees are debited and
realized P&L is credited to that one field; once booked the two are
fungible.  Running totals of each are kept alongside for reporting only.
"""

from __future__ import annotations

from src.core.logging import get_logger
from src.core.types import Position, Quote
from src.simulator.pnl_calculator import PnLCalculator

log = get_logger(__name__)


class PnLAccountant:
    """Owns the account balance and values it against the current quote.

    Args:
        initial_balance: Starting cash in base currency.
        pnl_calculator: Optional ``PnLCalculator`` instance.
    """

    def __init__(
        self,
        initial_balance: float,
        pnl_calculator: PnLCalculator | None = None,
    ) -> None:
        if initial_balance < 0:
            msg = f"initial_balance cannot be negative, got {initial_balance}"
            raise ValueError(msg)
        self._pnl = pnl_calculator or PnLCalculator()
        self._balance = initial_balance
        self._initial_balance = initial_balance
        self._total_fees = 0.0
        self._total_realized_pnl = 0.0

    # ── Accessors ───────────────────────────────────────────────

    @property
    def balance(self) -> float:
        return self._balance

    @property
    def initial_balance(self) -> float:
        return self._initial_balance

    @property
    def total_fees(self) -> float:
        """Net fees booked so far (maker rebates are negative)."""
        return self._total_fees

    @property
    def total_realized_pnl(self) -> float:
        return self._total_realized_pnl

    # ── Booking ─────────────────────────────────────────────────

    def add_balance(self, delta: float) -> None:
        """Credit (or, if negative, debit) the balance."""
        self._balance += delta

    def add_pnl(self, pnl: float) -> None:
        """Book realized P&L into the balance."""
        self._balance += pnl
        self._total_realized_pnl += pnl
        if pnl:
            log.info("pnl_booked", pnl=pnl, balance=self._balance)

    def charge_fee(self, fee: float) -> None:
        """Debit a trading fee; a negative fee is a rebate."""
        self.add_balance(-fee)
        self._total_fees += fee
        log.debug("fee_charged", fee=fee, balance=self._balance)

    # ── Valuation ───────────────────────────────────────────────

    def unrealized_pnl(self, position: Position, quote: Quote) -> float:
        """Mark *position* to *quote* without touching the balance."""
        return self._pnl.calculate_unrealized_pnl(position, quote)

    def equity(self, position: Position, quote: Quote) -> float:
        """Balance plus unrealized P&L of *position*."""
        return self._balance + self.unrealized_pnl(position, quote)
