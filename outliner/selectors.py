"""
Read-only queries over State.

Selectors never mutate state. Lookups that walk ancestors are O(depth) and stop
at the first ancestor that is not loaded.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from .normalize import hash_path, hash_thought
from .types import PIN_ATTRIBUTE, ROOT_TOKENS, Lexeme, Path, Thought, ThoughtId

if TYPE_CHECKING:
    from .state import State


def get_thought_by_id(state: State, thought_id: ThoughtId | None) -> Thought | None:
    """Get a thought from the thought index."""
    if thought_id is None:
        return None
    return state.thoughts.thought_index.get(thought_id)


def get_lexeme(state: State, value: str) -> Lexeme | None:
    """Get the lexeme of a thought value."""
    return state.thoughts.lexeme_index.get(hash_thought(value))


def get_children_ids(state: State, thought_id: ThoughtId) -> list[ThoughtId]:
    """Ids in a thought's children_map. Empty if the thought is not loaded."""
    thought = get_thought_by_id(state, thought_id)
    return thought.children_ids if thought else []


def has_pin(thought: Thought | None) -> bool:
    """True if a thought has a =pin attribute child."""
    return thought is not None and PIN_ATTRIBUTE in thought.children_map


def thought_to_path(state: State, thought_id: ThoughtId) -> Path:
    """
    Path of a thought from its context root.

    Context roots are excluded except when the thought is itself a root. If the
    lineage is not fully loaded, the path starts at the highest loaded ancestor.
    """
    if thought_id in ROOT_TOKENS:
        return (thought_id,)

    path = [thought_id]
    seen = {thought_id}
    thought = get_thought_by_id(state, thought_id)
    while thought is not None and thought.parent_id is not None:
        parent_id = thought.parent_id
        if parent_id in ROOT_TOKENS or parent_id in seen:
            break
        path.append(parent_id)
        seen.add(parent_id)
        thought = get_thought_by_id(state, parent_id)

    return tuple(reversed(path))


def get_ancestor_by(
    state: State,
    thought_id: ThoughtId,
    predicate: Callable[[Thought], bool],
) -> Thought | None:
    """Find the nearest loaded ancestor of a thought that matches a predicate."""
    thought = get_thought_by_id(state, thought_id)
    seen = {thought_id}
    while thought is not None and thought.parent_id is not None:
        if thought.parent_id in seen:
            return None
        seen.add(thought.parent_id)
        thought = get_thought_by_id(state, thought.parent_id)
        if thought is not None and predicate(thought):
            return thought
    return None


def is_thought_expanded(state: State, thought_id: ThoughtId | None) -> bool:
    """True if a thought is expanded. O(depth) because expanded is keyed by path."""
    if thought_id is None:
        return False
    return hash_path(thought_to_path(state, thought_id)) in state.expanded


__all__ = [
    "get_ancestor_by",
    "get_children_ids",
    "get_lexeme",
    "get_thought_by_id",
    "has_pin",
    "is_thought_expanded",
    "thought_to_path",
]
