"""Directory data models — node records and the swap-delete list."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional


@dataclass(frozen=True)
class NodeRecord:
    """A tracked node endpoint."""

    url: str
    is_approved: bool = False


class SwapList:
    """Unordered sequence of unique strings with O(1) membership and removal.

    Removal overwrites the target slot with the last element and shrinks the
    sequence by one, so the order of the remaining elements is not preserved.
    A url -> index map keeps the lookup O(1).
    """

    def __init__(self, items: Optional[Iterable[str]] = None) -> None:
        self._items: list[str] = []
        self._positions: dict[str, int] = {}
        for item in items or ():
            self.append(item)

    def append(self, item: str) -> None:
        if item in self._positions:
            raise ValueError(f"{item!r} is already present")
        self._positions[item] = len(self._items)
        self._items.append(item)

    def remove(self, item: str) -> None:
        """Swap-delete *item*. Raises ``KeyError`` if absent."""
        index = self._positions.pop(item)
        last = self._items.pop()
        if index < len(self._items):
            self._items[index] = last
            self._positions[last] = index

    def index(self, item: str) -> int:
        return self._positions[item]

    def snapshot(self) -> list[str]:
        return list(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._positions

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"SwapList({self._items!r})"
