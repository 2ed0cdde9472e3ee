"""
Expansion cache for descendant pulls.

A storage round trip for a thought returns the thought with all of its
children inlined. The children are cached here so that when they are dequeued
at the next level they do not trigger another round trip.
"""

from __future__ import annotations

from dataclasses import dataclass

from .types import Thought, ThoughtId, ThoughtWithChildren


@dataclass
class CacheStats:
    """Statistics about cache performance."""

    hits: int = 0
    misses: int = 0
    entry_count: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class ExpansionCache:
    """
    Children fetched with get_thought_with_children, keyed by child id.

    Owned by a single pull session. Never evicts: growth is bounded by the
    session and the whole cache is discarded when the session ends, trading
    memory for fewer round trips.
    """

    def __init__(self) -> None:
        self._cache: dict[ThoughtId, Thought] = {}
        self._stats = CacheStats()

    def get(self, thought_id: ThoughtId) -> Thought | None:
        """
        Get a previously fetched thought.

        Returns:
            Cached thought or None on a miss, in which case the caller must
            fetch from storage and call put_children with the result
        """
        thought = self._cache.get(thought_id)
        if thought is None:
            self._stats.misses += 1
            return None

        self._stats.hits += 1
        return thought

    def put_children(self, record: ThoughtWithChildren) -> int:
        """
        Cache the inline children of a storage record.

        Pending children are skipped so that a later real fetch is not
        short-circuited by a placeholder.

        Returns:
            Number of children cached
        """
        cached = 0
        for child_id, child in record.children.items():
            if child.pending:
                continue
            if child_id not in self._cache:
                self._stats.entry_count += 1
            self._cache[child_id] = child
            cached += 1
        return cached

    def __contains__(self, thought_id: object) -> bool:
        return thought_id in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        """Discard all entries."""
        self._cache.clear()
        self._stats = CacheStats()

    def get_stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._stats


__all__ = ["CacheStats", "ExpansionCache"]
