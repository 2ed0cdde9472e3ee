"""
Pull thoughts from a provider into the live state.

Drives one DescendantLoader per requested id and merges every level into the
StateStore as soon as it is yielded. The store is the single merge point, and
merges run on the event loop between awaits, so concurrent sessions never
interleave a merge.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable

from .config import PullConfig
from .descendants import PullStats, get_descendant_thoughts
from .providers import DataProvider
from .state import StateStore
from .types import ThoughtId, ThoughtIndices

logger = logging.getLogger(__name__)


async def pull(
    store: StateStore,
    provider: DataProvider,
    thought_ids: Iterable[ThoughtId],
    config: PullConfig | None = None,
    on_level: Callable[[ThoughtId, ThoughtIndices], None] | None = None,
    on_complete: Callable[[ThoughtId, PullStats], None] | None = None,
) -> ThoughtIndices:
    """
    Pull the descendants of one or more thoughts into the store.

    Args:
        store: Live state, updated after every level
        provider: Storage to pull from
        thought_ids: Roots to pull. Each gets its own session.
        config: Buffering limits
        on_level: Called with (root id, delta) after each delta is merged
        on_complete: Called with (root id, session stats) when a session finishes

    Returns:
        Union of all deltas merged by this pull

    Raises:
        Any error from a session. Deltas merged before the error stay merged.
    """
    pulled = ThoughtIndices()

    async def pull_one(thought_id: ThoughtId) -> None:
        loader = get_descendant_thoughts(provider, thought_id, store.get_state, config)
        async for delta in loader:
            # do not merge while a push is in flight
            await store.wait_for_push()
            store.update_thoughts(delta)
            pulled.thought_index.update(delta.thought_index)
            pulled.lexeme_index.update(delta.lexeme_index)
            if on_level is not None:
                on_level(thought_id, delta)
        logger.debug("pulled %s: %s", thought_id, loader.stats.to_dict())
        if on_complete is not None:
            on_complete(thought_id, loader.stats)

    ids = list(dict.fromkeys(thought_ids))
    if not ids:
        return pulled

    # gather so the first session error reaches the caller unwrapped
    await asyncio.gather(*(pull_one(thought_id) for thought_id in ids))

    return pulled


__all__ = ["pull"]
