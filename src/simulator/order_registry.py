"""Order registry — every order the exchange has seen, split open / historical."""

from __future__ import annotations

from src.core.exceptions import OrderNotFoundError
from src.core.logging import get_logger
from src.core.types import Order

log = get_logger(__name__)


class OrderRegistry:
    """Three insertion-ordered maps keyed by order id.

    * ``all``: every order ever filed
    * ``open``: orders in a non-terminal status
    * ``history``: orders in a terminal status

    An order lives in exactly one of ``open`` / ``history``.  Iteration over
    open orders follows submission order, which the engine relies on for
    FIFO re-evaluation of resting orders.
    """

    def __init__(self) -> None:
        self._orders: dict[str, Order] = {}
        self._open: dict[str, Order] = {}
        self._history: dict[str, Order] = {}

    def file(self, order: Order) -> None:
        """Record a freshly matched order in ``all`` and in ``open`` or ``history``."""
        if order.order_id in self._orders:
            msg = f"Order {order.order_id} already filed"
            raise ValueError(msg)
        self._orders[order.order_id] = order
        if order.is_open:
            self._open[order.order_id] = order
        else:
            self._history[order.order_id] = order
        log.debug(
            "order_filed",
            order_id=order.order_id,
            status=order.status.value,
            open=order.is_open,
        )

    def refile(self, order: Order) -> None:
        """Move an order to ``history`` after it reached a terminal status."""
        if order.order_id not in self._orders:
            raise OrderNotFoundError(
                f"Order not found: {order.order_id}",
                context={"order_id": order.order_id},
            )
        if order.is_open:
            return
        self._open.pop(order.order_id, None)
        self._history[order.order_id] = order
        log.debug("order_refiled", order_id=order.order_id, status=order.status.value)

    def get(self, order_id: str) -> Order:
        """Return the live order for *order_id*.

        Raises:
            OrderNotFoundError: If the id was never filed.
        """
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(
                f"Order not found: {order_id}",
                context={"order_id": order_id},
            )
        return order

    def open_orders(self, symbol: str | None = None) -> list[Order]:
        """Live open orders in submission order, optionally for one symbol."""
        return [o for o in self._open.values() if symbol is None or o.symbol == symbol]

    def history(self, symbol: str | None = None) -> list[Order]:
        return [o for o in self._history.values() if symbol is None or o.symbol == symbol]

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, order_id: object) -> bool:
        return order_id in self._orders
