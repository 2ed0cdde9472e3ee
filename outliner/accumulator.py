"""
Running merge of everything a pull session has discovered.

Seeded from the live state so that repeated pulls are incremental. The
accumulator never writes to the live state; the caller merges yielded deltas.
"""

from __future__ import annotations

from dataclasses import replace

from .state import State
from .types import Lexeme, Thought, ThoughtId, ThoughtIndices


class Accumulator:
    """Thought and lexeme indices accumulated over one pull session."""

    def __init__(self, seed: ThoughtIndices | None = None):
        seed = seed or ThoughtIndices()
        self.thought_index: dict[ThoughtId, Thought] = dict(seed.thought_index)
        self.lexeme_index: dict[str, Lexeme] = dict(seed.lexeme_index)

    @classmethod
    def from_state(cls, state: State) -> Accumulator:
        """Seed from the thoughts already in the live state."""
        return cls(state.thoughts)

    def merge_thoughts(self, thought_index: dict[ThoughtId, Thought]) -> None:
        """Merge thoughts. A later write always overwrites an earlier one."""
        self.thought_index.update(thought_index)

    def merge_lexemes(self, lexeme_index: dict[str, Lexeme]) -> None:
        """Merge lexemes. A later write always overwrites an earlier one."""
        self.lexeme_index.update(lexeme_index)

    def get(self, thought_id: ThoughtId | None) -> Thought | None:
        if thought_id is None:
            return None
        return self.thought_index.get(thought_id)

    def __contains__(self, thought_id: object) -> bool:
        return thought_id in self.thought_index

    def overlay(self, state: State) -> State:
        """
        The post-merge state snapshot: live state with accumulated entries on top.

        Thoughts the live state gained since the session started are kept.
        """
        return replace(
            state,
            thoughts=ThoughtIndices(
                thought_index={**state.thoughts.thought_index, **self.thought_index},
                lexeme_index={**state.thoughts.lexeme_index, **self.lexeme_index},
            ),
        )

    @staticmethod
    def delta(
        thought_index: dict[ThoughtId, Thought],
        lexeme_index: dict[str, Lexeme],
    ) -> ThoughtIndices:
        """A level delta containing only the entries touched in that level."""
        return ThoughtIndices(thought_index=dict(thought_index), lexeme_index=dict(lexeme_index))

    def snapshot(self) -> ThoughtIndices:
        """Copy of everything accumulated so far."""
        return ThoughtIndices(
            thought_index=dict(self.thought_index),
            lexeme_index=dict(self.lexeme_index),
        )


__all__ = ["Accumulator"]
