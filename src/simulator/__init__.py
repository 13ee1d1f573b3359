"""Simulated inverse-perpetual exchange — matching, positions, and P&L accounting."""

from src.simulator.account import PnLAccountant
from src.simulator.broker import SimBroker
from src.simulator.ids import SequentialIdAllocator, Uuid7Allocator
from src.simulator.order_engine import MatchingEngine
from src.simulator.order_registry import OrderRegistry
from src.simulator.pnl_calculator import PnLCalculator
from src.simulator.position_ledger import PositionChangeRecord, PositionLedger

__all__ = [
    "MatchingEngine",
    "OrderRegistry",
    "PnLAccountant",
    "PnLCalculator",
    "PositionChangeRecord",
    "PositionLedger",
    "SequentialIdAllocator",
    "SimBroker",
    "Uuid7Allocator",
]
