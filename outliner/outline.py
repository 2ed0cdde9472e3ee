"""
Import an indented plain-text outline into a provider.

    Animals
      Dogs
        =pin
      Cats:
    - Plants

Each level is indented by two spaces or one tab. A leading "- " or "* " bullet
is ignored.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import replace

from .normalize import hash_thought, normalize_thought
from .providers import DataProvider
from .session import get_session_id
from .types import (
    EM_TOKEN,
    HOME_TOKEN,
    ROOT_TOKENS,
    Lexeme,
    Thought,
    ThoughtId,
    children_map_key,
)
from .util import create_id, timestamp

REGEXP_BULLET = re.compile(r"^[-*]\s+")


def parse_outline(text: str) -> list[tuple[int, str]]:
    """
    Parse outline text into (depth, value) pairs.

    Raises:
        ValueError: If a line is indented more than one level below its predecessor
    """
    entries: list[tuple[int, str]] = []
    previous_depth = -1
    for lineno, raw in enumerate(text.splitlines(), start=1):
        if not raw.strip():
            continue
        expanded = raw.replace("\t", "  ")
        indent = len(expanded) - len(expanded.lstrip(" "))
        depth = indent // 2
        if depth > previous_depth + 1:
            raise ValueError(f"Line {lineno} is indented too far: {raw.strip()!r}")
        value = REGEXP_BULLET.sub("", expanded.strip())
        entries.append((depth, value))
        previous_depth = depth
    return entries


async def _ensure_parent(provider: DataProvider, parent_id: ThoughtId) -> Thought:
    """Get the parent, creating a context root on first import."""
    parent = await provider.get_thought_by_id(parent_id)
    if parent is not None:
        return parent
    if parent_id not in ROOT_TOKENS and parent_id != EM_TOKEN:
        raise ValueError(f"Parent thought not found: {parent_id}")
    parent = Thought(
        id=parent_id,
        value=parent_id,
        parent_id=HOME_TOKEN if parent_id == EM_TOKEN else None,
        last_updated=timestamp(),
        updated_by=get_session_id(),
    )
    await provider.update_thought(parent)
    return parent


async def _add_lexeme_context(provider: DataProvider, thought: Thought) -> None:
    key = hash_thought(thought.value)
    existing = (await provider.get_lexemes_by_ids([key]))[0]
    now = timestamp()
    if existing is None:
        lexeme = Lexeme(
            lemma=normalize_thought(thought.value),
            contexts=[thought.id],
            created=now,
            last_updated=now,
            updated_by=get_session_id(),
        )
    else:
        lexeme = Lexeme(
            lemma=existing.lemma,
            contexts=[*existing.contexts, thought.id],
            created=existing.created,
            last_updated=now,
            updated_by=get_session_id(),
        )
    await provider.update_lexeme(key, lexeme)


async def import_outline(
    provider: DataProvider,
    text: str,
    parent_id: ThoughtId = HOME_TOKEN,
    id_factory: Callable[[str], ThoughtId] | None = None,
) -> list[ThoughtId]:
    """
    Write an outline under a parent thought.

    Args:
        provider: Storage to write to
        text: Indented outline
        parent_id: Thought to import under
        id_factory: Creates the id of each imported thought from its value

    Returns:
        Ids of the imported thoughts, in outline order
    """
    entries = parse_outline(text)
    parent = await _ensure_parent(provider, parent_id)
    parent = replace(parent, children_map=dict(parent.children_map))
    make_id = id_factory or (lambda _value: create_id())
    now = timestamp()

    # thoughts are written once all children are known
    thoughts: dict[ThoughtId, Thought] = {parent.id: parent}
    stack: list[ThoughtId] = [parent.id]
    created: list[ThoughtId] = []
    next_rank = {parent.id: max([0.0, *(await _sibling_ranks(provider, parent))]) + 1}

    for depth, value in entries:
        del stack[depth + 1 :]
        owner = thoughts[stack[-1]]
        thought = Thought(
            id=make_id(value),
            value=value,
            rank=next_rank.get(owner.id, 0),
            parent_id=owner.id,
            last_updated=now,
            updated_by=get_session_id(),
        )
        next_rank[owner.id] = thought.rank + 1
        owner.children_map[children_map_key(thought)] = thought.id
        thoughts[thought.id] = thought
        stack.append(thought.id)
        created.append(thought.id)

    for thought in thoughts.values():
        await provider.update_thought(thought)
    for thought_id in created:
        await _add_lexeme_context(provider, thoughts[thought_id])

    return created


async def _sibling_ranks(provider: DataProvider, parent: Thought) -> list[float]:
    siblings = await provider.get_thoughts_by_ids(parent.children_ids)
    return [sibling.rank for sibling in siblings if sibling is not None]


__all__ = ["import_outline", "parse_outline"]
