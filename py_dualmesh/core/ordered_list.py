"""
Double-ended list with 1-based logical indexing.

Backed by a single Python list with a head offset, so pushing at the front
does not shift the stored items. Used as the edge-flip work stack by the
triangulator and as the active-sample queue by the Poisson-disc sampler.
"""

from typing import Any, Iterable, Iterator, List, Optional

_MIN_CAPACITY = 16


class OrderedList:
    """
    Growable deque addressed by position 1 (front) .. len (back).

    Every operation is O(1) amortized. Storage grows by doubling; the live
    items are re-centred on growth so both ends keep room to expand.
    """

    def __init__(self, items: Optional[Iterable[Any]] = None):
        self._items: List[Any] = [None] * _MIN_CAPACITY
        self._head = _MIN_CAPACITY // 2  # slot of the first item
        self._length = 0
        if items is not None:
            for item in items:
                self.push_back(item)

    def __len__(self) -> int:
        return self._length

    def __bool__(self) -> bool:
        return self._length > 0

    def __iter__(self) -> Iterator[Any]:
        for index in range(self._head, self._head + self._length):
            yield self._items[index]

    def __reversed__(self) -> Iterator[Any]:
        for index in range(self._head + self._length - 1, self._head - 1, -1):
            yield self._items[index]

    def __repr__(self) -> str:
        return f"OrderedList({list(self)!r})"

    def in_bounds(self, index: int) -> bool:
        """Whether ``index`` addresses an item (1 = front, len = back)."""
        return 1 <= index <= self._length

    def _slot(self, index: int) -> int:
        if not self.in_bounds(index):
            raise IndexError(f"list index {index} out of range 1..{self._length}")
        return self._head + index - 1

    def get(self, index: int) -> Any:
        return self._items[self._slot(index)]

    def set(self, index: int, value: Any) -> None:
        self._items[self._slot(index)] = value

    def front(self) -> Any:
        if not self._length:
            raise IndexError("front of empty list")
        return self._items[self._head]

    def back(self) -> Any:
        if not self._length:
            raise IndexError("back of empty list")
        return self._items[self._head + self._length - 1]

    def _grow(self) -> None:
        capacity = max(_MIN_CAPACITY, len(self._items) * 2)
        head = (capacity - self._length) // 2
        items: List[Any] = [None] * capacity
        items[head:head + self._length] = self._items[self._head:self._head + self._length]
        self._items = items
        self._head = head

    def push_back(self, value: Any) -> None:
        if self._head + self._length == len(self._items):
            self._grow()
        self._items[self._head + self._length] = value
        self._length += 1

    def push_front(self, value: Any) -> None:
        if self._head == 0:
            self._grow()
        self._head -= 1
        self._items[self._head] = value
        self._length += 1

    def pop_back(self) -> Any:
        if not self._length:
            raise IndexError("pop from empty list")
        self._length -= 1
        slot = self._head + self._length
        value = self._items[slot]
        self._items[slot] = None
        return value

    def pop_front(self) -> Any:
        if not self._length:
            raise IndexError("pop from empty list")
        value = self._items[self._head]
        self._items[self._head] = None
        self._head += 1
        self._length -= 1
        return value

    def swap_remove(self, index: int) -> Any:
        """
        Remove the item at ``index`` by moving the back item into its place.

        Order is not preserved; this is O(1) where an ordered delete is O(n).

        Returns:
            The removed item
        """
        value = self.get(index)
        tail = self.pop_back()
        if index <= self._length:
            self.set(index, tail)
        return value

    def clear(self) -> None:
        self._items = [None] * _MIN_CAPACITY
        self._head = _MIN_CAPACITY // 2
        self._length = 0
