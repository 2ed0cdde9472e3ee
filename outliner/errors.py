"""
Errors raised by the outliner.

Missing data from a provider is not an error: absent thoughts and lexemes are
filtered out of a pull. Provider transport errors propagate unmodified.
"""

from __future__ import annotations


class OutlinerError(Exception):
    """Base class for outliner errors."""


class ThoughtNotFoundError(OutlinerError):
    """
    A thought merged during a pull could not be found again.

    Indicates that the accumulated state and the classifier disagree about what
    was just merged. Aborts the pull session.
    """

    def __init__(self, thought_id: str):
        self.thought_id = thought_id
        super().__init__(f"Thought not found for id {thought_id}")


class SessionReusedError(OutlinerError):
    """A descendant loader was iterated more than once."""

    def __init__(self, thought_id: str):
        self.thought_id = thought_id
        super().__init__(
            f"Descendant loader for {thought_id} has already been consumed; start a new session"
        )


__all__ = ["OutlinerError", "SessionReusedError", "ThoughtNotFoundError"]
