"""Order identity allocators."""

from __future__ import annotations

from uuid_extensions import uuid7

from src.core.interfaces import BaseIdAllocator


class Uuid7Allocator(BaseIdAllocator):
    """Time-ordered UUIDv7 ids; the default for live-style runs."""

    def next_id(self) -> str:
        return str(uuid7())


class SequentialIdAllocator(BaseIdAllocator):
    """Monotonic counter ids so replays of the same tape produce the same ids."""

    def __init__(self, start: int = 1, prefix: str = "") -> None:
        self._next = start
        self._prefix = prefix

    def next_id(self) -> str:
        order_id = f"{self._prefix}{self._next}"
        self._next += 1
        return order_id
