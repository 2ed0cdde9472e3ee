"""
Core types for the outliner.

Thoughts form a tree persisted in a DataProvider and mirrored into the
in-memory State. Lexemes link thoughts whose values normalize to the same
fingerprint.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from dataclasses import fields as dc_fields
from typing import Any

ThoughtId = str
Path = tuple[ThoughtId, ...]

# Context roots
HOME_TOKEN: ThoughtId = "__ROOT__"
ABSOLUTE_TOKEN: ThoughtId = "__ABSOLUTE__"
ROOT_TOKENS: frozenset[ThoughtId] = frozenset({HOME_TOKEN, ABSOLUTE_TOKEN})

# System root of metaprogramming (settings, shortcuts, etc)
EM_TOKEN: ThoughtId = "__EM__"

# Reserved attribute values
PIN_ATTRIBUTE = "=pin"
ARCHIVE_ATTRIBUTE = "=archive"

# A thought whose value ends with this char always shows its children
EXPAND_THOUGHT_CHAR = ":"


@dataclass
class Thought:
    """
    A single outline item.

    children_map keys attribute children by value and all other children by id,
    so that children_map["=pin"] resolves the pin attribute directly.
    """

    id: ThoughtId
    value: str
    rank: float = 0
    parent_id: ThoughtId | None = None
    children_map: dict[str, ThoughtId] = field(default_factory=dict)
    last_updated: str = ""
    updated_by: str = ""
    # children are known to exist in storage but have not been loaded
    pending: bool = False

    @property
    def children_ids(self) -> list[ThoughtId]:
        """Ids of all children, in children_map order."""
        return list(self.children_map.values())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Thought:
        """Create from dictionary, tolerating unknown fields."""
        known = {f.name for f in dc_fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["children_map"] = dict(values.get("children_map") or {})
        return cls(**values)


@dataclass
class Lexeme:
    """All thoughts that share a normalized value."""

    lemma: str
    contexts: list[ThoughtId] = field(default_factory=list)
    created: str = ""
    last_updated: str = ""
    updated_by: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Lexeme:
        """Create from dictionary, tolerating unknown fields."""
        known = {f.name for f in dc_fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["contexts"] = list(values.get("contexts") or [])
        return cls(**values)


@dataclass
class ThoughtWithChildren:
    """
    Wire form of a thought with its immediate children inlined.

    Lets a provider answer a thought and all of its children in one round trip.
    """

    thought: Thought
    children: dict[ThoughtId, Thought] = field(default_factory=dict)

    @property
    def id(self) -> ThoughtId:
        return self.thought.id


# A provider returns either a plain thought (from the expansion cache) or a
# thought with its children inlined (from a storage round trip).
ThoughtRecord = Thought | ThoughtWithChildren


@dataclass
class ThoughtIndices:
    """
    Thought and lexeme indices.

    Used both for accumulated state and for the per-level delta yielded by a pull.
    """

    thought_index: dict[ThoughtId, Thought] = field(default_factory=dict)
    lexeme_index: dict[str, Lexeme] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.thought_index or self.lexeme_index)

    def copy(self) -> ThoughtIndices:
        """Shallow copy of both indices."""
        return ThoughtIndices(
            thought_index=dict(self.thought_index),
            lexeme_index=dict(self.lexeme_index),
        )


def children_map_key(thought: Thought) -> str:
    """Key under which a thought is stored in its parent's children_map."""
    from .normalize import is_attribute

    return thought.value if is_attribute(thought.value) else thought.id


def create_children_map(children: list[Thought]) -> dict[str, ThoughtId]:
    """Build a children_map from child thoughts."""
    return {children_map_key(child): child.id for child in children}


def to_thought(record: ThoughtRecord) -> Thought:
    """Normalize either wire shape into a plain Thought."""
    if isinstance(record, ThoughtWithChildren):
        thought = record.thought
        return Thought(
            id=thought.id,
            value=thought.value,
            rank=thought.rank,
            parent_id=thought.parent_id,
            children_map=create_children_map(list(record.children.values())),
            last_updated=thought.last_updated,
            updated_by=thought.updated_by,
            pending=thought.pending,
        )
    return record


__all__ = [
    "ABSOLUTE_TOKEN",
    "ARCHIVE_ATTRIBUTE",
    "EM_TOKEN",
    "EXPAND_THOUGHT_CHAR",
    "HOME_TOKEN",
    "Lexeme",
    "PIN_ATTRIBUTE",
    "Path",
    "ROOT_TOKENS",
    "Thought",
    "ThoughtId",
    "ThoughtIndices",
    "ThoughtRecord",
    "ThoughtWithChildren",
    "children_map_key",
    "create_children_map",
    "to_thought",
]
