"""
Breadth-first descendant pull.

A DescendantLoader reconstructs the subtree under a thought from a
DataProvider, one level at a time. Each level is yielded as a delta as soon as
it is classified, so partial results are usable before the whole subtree has
arrived. Thoughts whose children would exceed the depth or size budget are
marked pending instead of expanded, unless they are visible, on the cursor's
lineage, or part of the metaprogramming tree.

Usage:
    loader = get_descendant_thoughts(provider, thought_id, store.get_state)
    async for delta in loader:
        store.update_thoughts(delta)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import asdict, dataclass
from typing import Any

from .accumulator import Accumulator
from .cache import ExpansionCache
from .classifier import classify_thought
from .config import PullConfig
from .errors import SessionReusedError, ThoughtNotFoundError
from .frontier import DepthCounter, FrontierQueue
from .normalize import hash_thought
from .providers import DataProvider
from .selectors import get_thought_by_id
from .state import State
from .types import (
    Lexeme,
    Thought,
    ThoughtId,
    ThoughtIndices,
    ThoughtRecord,
    to_thought,
)
from .util import head

logger = logging.getLogger(__name__)


@dataclass
class PullStats:
    """Counters for one pull session."""

    levels: int = 0
    thoughts_fetched: int = 0
    round_trips: int = 0
    cache_hits: int = 0
    cursor_fetches: int = 0
    pending_marked: int = 0
    malformed_dropped: int = 0
    missing: int = 0
    lexemes_fetched: int = 0
    # ids ever enqueued, the input to the max_thoughts budget
    enqueued: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


class DescendantLoader:
    """
    One pull session for the descendants of a thought.

    Owns its frontier queue, depth counter and expansion cache. Iterating the
    loader yields one ThoughtIndices delta per breadth-first level and is
    consumer-paced: the next level is not fetched until the previous delta has
    been consumed. A loader can only be iterated once.
    """

    def __init__(
        self,
        provider: DataProvider,
        thought_id: ThoughtId,
        get_state: Callable[[], State],
        config: PullConfig | None = None,
    ):
        """
        Initialize a pull session.

        Args:
            provider: Storage to pull from
            thought_id: Root of the subtree to pull
            get_state: Live state accessor, re-invoked at every level
            config: Buffering limits (default PullConfig())
        """
        self.provider = provider
        self.thought_id = thought_id
        self.get_state = get_state
        self.config = config or PullConfig()

        self.queue = FrontierQueue([thought_id])
        self.depth = DepthCounter()
        self.cache = ExpansionCache()
        self.accumulator = Accumulator.from_state(get_state())
        self.stats = PullStats()

        self._started = False
        # fetch tasks of a cancelled level, kept alive until they finish
        self._orphans: set[asyncio.Future[Any]] = set()

    def __aiter__(self) -> AsyncIterator[ThoughtIndices]:
        if self._started:
            raise SessionReusedError(self.thought_id)
        self._started = True
        return self._run()

    async def _run(self) -> AsyncIterator[ThoughtIndices]:
        """Drain the frontier one level at a time."""
        try:
            while self.queue.size() > 0:
                # snapshot live state once per level so cursor moves are
                # observed at level boundaries, not mid-level
                state = self.get_state()
                ids = self._next_batch(state)

                records = await self._fetch_level(ids)
                thought_index = self._process_level(state, ids, records)
                lexeme_index = await self._fetch_lexemes(state, thought_index)

                self.accumulator.merge_thoughts(thought_index)
                self.accumulator.merge_lexemes(lexeme_index)
                self.stats.levels += 1

                logger.debug(
                    "pull %s level %d: %d thoughts, %d lexemes, %d queued (total %d)",
                    self.thought_id,
                    self.depth.get(),
                    len(thought_index),
                    len(lexeme_index),
                    self.queue.size(),
                    self.queue.total(),
                )

                yield Accumulator.delta(thought_index, lexeme_index)

                self.depth.inc()
        finally:
            self.stats.cache_hits = self.cache.get_stats().hits
            self.stats.enqueued = self.queue.total()
            self.cache.clear()
            logger.debug("pull %s finished: %s", self.thought_id, self.stats.to_dict())

    def _next_batch(self, state: State) -> list[ThoughtId]:
        """
        Ids to fetch this level: the pending cursor path, then the drained queue.

        If the cursor's thought is missing or pending it is fetched at the first
        opportunity, even in the middle of a long pull. Pending ancestors on the
        cursor path are fetched with it, so a loaded cursor never sits below a
        pending parent. This may fetch a thought twice in a session, which is
        far simpler than pausing and resuming pulls.
        """
        cursor_ids: list[ThoughtId] = []
        if state.cursor:
            cursor_id = head(state.cursor)
            for path_id in state.cursor:
                thought = self.accumulator.get(path_id) or get_thought_by_id(state, path_id)
                missing = thought is None and path_id == cursor_id
                if missing or (thought is not None and thought.pending):
                    cursor_ids.append(path_id)
                    self.stats.cursor_fetches += 1

        # one fetch per id per level
        return list(dict.fromkeys([*cursor_ids, *self.queue.drain()]))

    async def _fetch_one(self, thought_id: ThoughtId) -> ThoughtRecord | None:
        """Get a thought from the expansion cache or the provider."""
        cached = self.cache.get(thought_id)
        if cached is not None:
            return cached

        self.stats.round_trips += 1
        record = await self.provider.get_thought_with_children(thought_id)
        if record is not None:
            self.cache.put_children(record)
        return record

    async def _fetch_level(self, ids: list[ThoughtId]) -> list[ThoughtRecord | None]:
        """
        Fetch all ids of a level concurrently and wait for all of them.

        If the consumer is cancelled while fetches are in flight, the fetches are
        left to complete and their results are discarded.
        """
        if not ids:
            return []
        tasks = [asyncio.create_task(self._fetch_one(thought_id)) for thought_id in ids]
        gathered = asyncio.gather(*tasks)
        try:
            return await asyncio.shield(gathered)
        except asyncio.CancelledError:
            self._orphans.add(gathered)
            gathered.add_done_callback(self._discard_orphan)
            raise

    def _discard_orphan(self, future: asyncio.Future[Any]) -> None:
        self._orphans.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.debug("discarded fetch after cancellation: %r", future.exception())

    def _process_level(
        self,
        state: State,
        ids: list[ThoughtId],
        records: list[ThoughtRecord | None],
    ) -> dict[ThoughtId, Thought]:
        """
        Merge and classify the thoughts fetched for one level.

        Synchronous: runs atomically against the state snapshot of this level.

        Returns:
            Final thought records touched this level, keyed by id
        """
        fetched: dict[ThoughtId, Thought] = {}
        for thought_id, record in zip(ids, records):
            if record is None:
                # missing thoughts, such as deleted ids, are skipped
                self.stats.missing += 1
                continue
            thought = to_thought(record)
            if thought.value is None:
                logger.warning(
                    "Undefined thought value from %s: %s",
                    self.provider.name,
                    thought_id,
                )
                self.stats.malformed_dropped += 1
                continue
            fetched[thought_id] = thought
            self.stats.thoughts_fetched += 1

        self.accumulator.merge_thoughts(fetched)
        updated_state = self.accumulator.overlay(state)

        thought_index: dict[ThoughtId, Thought] = {}
        for thought_id, thought in fetched.items():
            classification = classify_thought(
                thought,
                updated_state,
                depth=self.depth.get(),
                total=self.queue.total(),
                config=self.config,
                root_id=self.thought_id,
                cursor=state.cursor,
            )
            if classification.pending:
                self.stats.pending_marked += 1
            self.queue.add(classification.enqueue)
            thought_index[thought_id] = classification.thought

        return thought_index

    async def _fetch_lexemes(
        self,
        state: State,
        thought_index: dict[ThoughtId, Thought],
    ) -> dict[str, Lexeme]:
        """Fetch the lexemes of every thought touched this level."""
        if not thought_index:
            return {}

        updated_state = self.accumulator.overlay(state)
        keys: list[str] = []
        for thought_id in thought_index:
            thought = get_thought_by_id(updated_state, thought_id)
            if thought is None:
                raise ThoughtNotFoundError(thought_id)
            keys.append(hash_thought(thought.value))

        keys = list(dict.fromkeys(keys))
        lexemes = await self.provider.get_lexemes_by_ids(keys)
        lexeme_index = {key: lexeme for key, lexeme in zip(keys, lexemes) if lexeme is not None}
        self.stats.lexemes_fetched += len(lexeme_index)
        return lexeme_index


def get_descendant_thoughts(
    provider: DataProvider,
    thought_id: ThoughtId,
    get_state: Callable[[], State],
    config: PullConfig | None = None,
) -> DescendantLoader:
    """
    Start a pull session for the descendants of a thought.

    Args:
        provider: Storage to pull from
        thought_id: Root of the subtree to pull
        get_state: Live state accessor, re-invoked at every level
        config: Buffering limits

    Returns:
        Single-use async iterable of per-level deltas
    """
    return DescendantLoader(provider, thought_id, get_state, config)


__all__ = [
    "DescendantLoader",
    "PullStats",
    "get_descendant_thoughts",
]
