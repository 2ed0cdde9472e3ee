"""
Live application state.

State values are treated as immutable: reducers return a new State. StateStore
holds the current State and is the single writer; pulls only produce deltas
that the store merges.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace

from .normalize import hash_path
from .types import (
    ABSOLUTE_TOKEN,
    EM_TOKEN,
    HOME_TOKEN,
    Path,
    Thought,
    ThoughtIndices,
)
from .util import never

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class State:
    """Snapshot of the live application state."""

    thoughts: ThoughtIndices = field(default_factory=ThoughtIndices)
    cursor: Path | None = None
    # expanded paths keyed by hash_path
    expanded: dict[str, Path] = field(default_factory=dict)
    # a push to the provider is in flight
    is_pushing: bool = False


def initial_state() -> State:
    """State before anything has been pulled: context roots as pending placeholders."""
    roots = {
        HOME_TOKEN: Thought(id=HOME_TOKEN, value=HOME_TOKEN, last_updated=never(), pending=True),
        ABSOLUTE_TOKEN: Thought(
            id=ABSOLUTE_TOKEN, value=ABSOLUTE_TOKEN, last_updated=never(), pending=True
        ),
        EM_TOKEN: Thought(
            id=EM_TOKEN,
            value=EM_TOKEN,
            parent_id=HOME_TOKEN,
            last_updated=never(),
            pending=True,
        ),
    }
    return State(
        thoughts=ThoughtIndices(thought_index=roots),
        expanded={hash_path((HOME_TOKEN,)): (HOME_TOKEN,)},
    )


# -----------------------------------------------------------------------------
# Reducers
# -----------------------------------------------------------------------------


def update_thoughts(state: State, delta: ThoughtIndices) -> State:
    """Merge a delta into state. Last write wins per key."""
    if not delta:
        return state
    return replace(
        state,
        thoughts=ThoughtIndices(
            thought_index={**state.thoughts.thought_index, **delta.thought_index},
            lexeme_index={**state.thoughts.lexeme_index, **delta.lexeme_index},
        ),
    )


def set_cursor(state: State, path: Path | None) -> State:
    """Move the cursor."""
    return replace(state, cursor=tuple(path) if path is not None else None)


def expand(state: State, path: Path) -> State:
    """Mark a path as expanded."""
    path = tuple(path)
    return replace(state, expanded={**state.expanded, hash_path(path): path})


def collapse(state: State, path: Path) -> State:
    """Remove a path from the expansion set."""
    key = hash_path(tuple(path))
    return replace(state, expanded={k: v for k, v in state.expanded.items() if k != key})


def is_pushing(state: State, value: bool) -> State:
    """Track a push in progress. Pulls wait for it to finish before merging."""
    return replace(state, is_pushing=value)


class StateStore:
    """
    Holds the current State.

    get_state is the live state accessor passed to descendant loaders: it must be
    called again at every level rather than cached.
    """

    def __init__(self, state: State | None = None):
        self._state = state if state is not None else initial_state()
        self._push_idle: asyncio.Event | None = None

    def get_state(self) -> State:
        """Current state."""
        return self._state

    def update_thoughts(self, delta: ThoughtIndices) -> State:
        self._state = update_thoughts(self._state, delta)
        return self._state

    def set_cursor(self, path: Path | None) -> State:
        self._state = set_cursor(self._state, path)
        return self._state

    def expand(self, path: Path) -> State:
        self._state = expand(self._state, path)
        return self._state

    def collapse(self, path: Path) -> State:
        self._state = collapse(self._state, path)
        return self._state

    def set_is_pushing(self, value: bool) -> State:
        """Set the push flag and wake any pull waiting for the push to end."""
        self._state = is_pushing(self._state, value)
        event = self._get_push_idle()
        if value:
            event.clear()
        else:
            event.set()
        logger.debug("is_pushing=%s", value)
        return self._state

    async def wait_for_push(self) -> None:
        """Suspend until no push is in flight."""
        if not self._state.is_pushing:
            return
        await self._get_push_idle().wait()

    def _get_push_idle(self) -> asyncio.Event:
        """Get or create the event that is set while no push is in flight."""
        if self._push_idle is None:
            self._push_idle = asyncio.Event()
            if not self._state.is_pushing:
                self._push_idle.set()
        return self._push_idle


__all__ = [
    "State",
    "StateStore",
    "collapse",
    "expand",
    "initial_state",
    "is_pushing",
    "set_cursor",
    "update_thoughts",
]
