"""
Buffering decision for a single fetched thought.

Decides whether a thought's children are loaded at the next level or the
thought is marked pending. Reconciles three pressures: do not fetch what the
user cannot see, never defer the cursor's lineage, and never defer
metaprogramming thoughts that the UI reads synchronously.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from .config import PullConfig
from .normalize import is_attribute
from .selectors import get_ancestor_by, get_thought_by_id, has_pin, is_thought_expanded
from .session import get_session_id
from .state import State
from .types import (
    ARCHIVE_ATTRIBUTE,
    EM_TOKEN,
    EXPAND_THOUGHT_CHAR,
    PIN_ATTRIBUTE,
    Path,
    Thought,
    ThoughtId,
)
from .util import never


@dataclass
class Classification:
    """Final record of a thought and the ids it adds to the next level."""

    thought: Thought
    enqueue: list[ThoughtId] = field(default_factory=list)
    pending: bool = False


def is_unarchived_attribute(thought: Thought) -> bool:
    """True if a thought is a meta attribute other than =archive."""
    return is_attribute(thought.value) and thought.value != ARCHIVE_ATTRIBUTE


def is_meta_descendant(state: State, thought: Thought) -> bool:
    """True if a thought is a meta attribute or descends from one. Ignores =archive."""
    return is_unarchived_attribute(thought) or (
        get_ancestor_by(state, thought.id, is_unarchived_attribute) is not None
    )


def is_em_descendant(state: State, thought: Thought, root_id: ThoughtId) -> bool:
    """True if a thought is the metaprogramming root or one of its descendants."""
    return (
        root_id == EM_TOKEN
        or thought.id == EM_TOKEN
        or get_ancestor_by(state, thought.id, lambda t: t.id == EM_TOKEN) is not None
    )


def is_visible(state: State, thought: Thought, cursor: Path | None = None) -> bool:
    """
    True if a thought is, or is about to be, on screen.

    =pin is checked directly on the parent's children_map, since the pin is a
    sibling that may not be loaded yet. =pin/false is a false positive here; it
    is rare and only means a thought is loaded that could have been buffered.
    """
    if cursor and thought.id in cursor:
        return True
    if is_thought_expanded(state, thought.id) or is_thought_expanded(state, thought.parent_id):
        return True
    parent = get_thought_by_id(state, thought.parent_id)
    if parent is None:
        return False
    return has_pin(parent) or (parent.value or "").endswith(EXPAND_THOUGHT_CHAR)


def has_loaded_children(state: State, thought: Thought) -> bool:
    """True if any child of a thought is already in the thought index."""
    index = state.thoughts.thought_index
    return any(child_id in index for child_id in thought.children_ids)


def classify_thought(
    thought: Thought,
    state: State,
    *,
    depth: int,
    total: int,
    config: PullConfig,
    root_id: ThoughtId,
    cursor: Path | None = None,
) -> Classification:
    """
    Decide whether to mark a thought pending or enqueue its children.

    Args:
        thought: The fetched thought
        state: Post-merge state snapshot for this level
        depth: Current breadth-first level
        total: Number of ids enqueued so far in the session
        config: Buffering limits
        root_id: Id the pull session was started for
        cursor: Cursor path at the start of this level

    Returns:
        Classification with the final thought record and the ids to enqueue
    """
    enqueue: list[ThoughtId] = []

    # load ancestors of tangential contexts
    parent = get_thought_by_id(state, thought.parent_id)
    if thought.parent_id is not None and parent is None and not config.prevent_loading_ancestors:
        enqueue.append(thought.parent_id)

    children_ids = thought.children_ids
    has_children = len(children_ids) > 0
    is_max_depth_reached = depth >= config.max_depth
    is_max_thoughts_reached = total + len(children_ids) > config.max_thoughts

    # buffer only when a limit is reached, and never buffer leaves, visible
    # thoughts, the pull root, EM and its descendants, or meta attributes
    # (except =archive) and their descendants
    is_pending = (
        (is_max_depth_reached or is_max_thoughts_reached)
        and has_children
        and thought.id != root_id
        and not is_visible(state, thought, cursor)
        and not has_loaded_children(state, thought)
        and not is_em_descendant(state, thought, root_id)
        and not is_meta_descendant(state, thought)
    )

    if not is_pending:
        enqueue.extend(children_ids)
        return Classification(thought=thought, enqueue=enqueue)

    # enqueue =pin even if the thought is buffered. Once =pin is loaded the
    # thought is visible and its children load on the next pull.
    pin_id = thought.children_map.get(PIN_ATTRIBUTE)
    if pin_id is not None:
        enqueue.append(pin_id)

    return Classification(
        thought=replace(
            thought,
            last_updated=never(),
            updated_by=get_session_id(),
            pending=True,
        ),
        enqueue=enqueue,
        pending=True,
    )


__all__ = [
    "Classification",
    "classify_thought",
    "has_loaded_children",
    "is_em_descendant",
    "is_meta_descendant",
    "is_unarchived_attribute",
    "is_visible",
]
