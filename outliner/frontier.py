"""
Breadth-first bookkeeping for a pull session.

A FrontierQueue and DepthCounter are owned by exactly one session. They are
never shared, so concurrent pulls cannot corrupt each other's budget.
"""

from __future__ import annotations

from collections.abc import Iterable

from .types import ThoughtId


class FrontierQueue:
    """
    Append-only work list of thought ids awaiting expansion.

    Does not deduplicate. total() counts every id added after construction and
    is the sole input to the max_thoughts budget; it is not recomputed from the
    queue length, since drained ids still count. Seed ids are queued but not
    counted, so the pull root does not use up budget.
    """

    def __init__(self, initial: Iterable[ThoughtId] = ()):
        self._items: list[ThoughtId] = list(initial)
        self._total = 0

    def add(self, ids: Iterable[ThoughtId]) -> None:
        """Append ids and increase the total by the batch size."""
        batch = list(ids)
        self._items.extend(batch)
        self._total += len(batch)

    def drain(self) -> list[ThoughtId]:
        """Return the full contents of the queue and clear it."""
        items = self._items
        self._items = []
        return items

    def snapshot(self) -> list[ThoughtId]:
        """Copy of the current contents."""
        return list(self._items)

    def size(self) -> int:
        """Number of ids currently queued."""
        return len(self._items)

    def total(self) -> int:
        """Number of ids ever queued."""
        return self._total

    def __len__(self) -> int:
        return len(self._items)


class DepthCounter:
    """Current breadth-first level of a session."""

    def __init__(self, initial: int = 0):
        self._n = initial

    def get(self) -> int:
        return self._n

    def inc(self, step: int = 1) -> int:
        self._n += step
        return self._n


__all__ = ["DepthCounter", "FrontierQueue"]
