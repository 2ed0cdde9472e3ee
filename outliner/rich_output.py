"""
Rich terminal output for outliner pulls.

Provides terminal output using the Rich library with:
- Consistent symbol vocabulary (no emoji)
- Thought budget gauges
- Outline tree of a pull with pending thoughts marked
- Configurable colors and display depth
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from .types import Thought, ThoughtId, ThoughtIndices

# ============================================================================
# Visual Language System
# ============================================================================


class Symbol(str, Enum):
    """Semantic symbols for pull output."""

    PULL = "◆"  # Pull session started
    LEVEL = "▶"  # Level merged
    PENDING = "◇"  # Children not loaded
    LOADED = "✓"  # Pull complete
    ERROR = "✗"  # Pull failed
    BUDGET = "≡"  # Thought budget


class Color(str, Enum):
    """Semantic colors for pull output."""

    PULL = "cyan"
    LEVEL = "yellow"
    PENDING = "blue"
    LOADED = "green"
    ERROR = "red"
    WARNING = "yellow"
    BUDGET = "white"
    DIM = "dim"


SYMBOL_COLORS: dict[Symbol, Color] = {
    Symbol.PULL: Color.PULL,
    Symbol.LEVEL: Color.LEVEL,
    Symbol.PENDING: Color.PENDING,
    Symbol.LOADED: Color.LOADED,
    Symbol.ERROR: Color.ERROR,
    Symbol.BUDGET: Color.BUDGET,
}


@dataclass
class OutputConfig:
    """Configuration for Rich output."""

    colors: bool = True
    max_depth_display: int = 5

    @classmethod
    def from_env(cls) -> OutputConfig:
        """
        Load configuration from environment variables.

        Respects NO_COLOR. OUTLINER_COLORS=false also disables colors.
        """
        no_color = os.environ.get("NO_COLOR") is not None
        colors_env = os.environ.get("OUTLINER_COLORS", "").lower()
        return cls(colors=not no_color and colors_env != "false")


# ============================================================================
# Budget Display
# ============================================================================


def create_budget_gauge(
    total: int,
    max_thoughts: int,
    depth: int | None = None,
    max_depth: int | None = None,
    width: int = 10,
) -> Text:
    """
    Create a gauge of thoughts enqueued against the max_thoughts budget.

    Example output:
        ≡ Thoughts: ████████░░ 80/100 (depth 2/100)
    """
    percentage = min(total / max_thoughts, 1.0) if max_thoughts > 0 else 1.0
    filled = int(width * percentage)

    text = Text()
    text.append(f"{Symbol.BUDGET.value} ", style=Color.BUDGET.value)
    text.append("Thoughts: ", style="bold")

    if percentage >= 1.0:
        bar_color = Color.ERROR.value
    elif percentage >= 0.75:
        bar_color = Color.WARNING.value
    else:
        bar_color = Color.LOADED.value

    text.append("█" * filled, style=bar_color)
    text.append("░" * (width - filled), style=Color.DIM.value)
    text.append(f" {total}/{max_thoughts}")

    if depth is not None and max_depth is not None:
        text.append(f" (depth {depth}/{max_depth})", style=Color.DIM.value)

    return text


# ============================================================================
# Outline Tree
# ============================================================================


def _thought_label(thought: Thought) -> Text:
    text = Text(thought.value)
    if thought.pending:
        text.append(f" {Symbol.PENDING.value}", style=Color.PENDING.value)
        text.append(f" {len(thought.children_map)} not loaded", style=Color.DIM.value)
    return text


def _count_hidden(thought_index: Mapping[ThoughtId, Thought], thought: Thought) -> int:
    """Number of loaded levels below a thought."""
    seen = {thought.id}
    depth = 0
    frontier = [thought]
    while frontier:
        children = [
            thought_index[child_id]
            for t in frontier
            for child_id in t.children_ids
            if child_id in thought_index and child_id not in seen
        ]
        seen.update(child.id for child in children)
        if children:
            depth += 1
        frontier = children
    return depth


def build_outline_tree(
    thought_index: Mapping[ThoughtId, Thought],
    root_id: ThoughtId,
    max_depth_display: int = 5,
) -> Tree:
    """
    Build a tree of the loaded descendants of a thought.

    Children are shown in rank order. Loaded levels beyond max_depth_display
    are summarised as "... (+N deeper)".
    """
    root = thought_index.get(root_id)
    if root is None:
        return Tree(Text(f"{Symbol.ERROR.value} {root_id} not loaded", style=Color.ERROR.value))

    tree = Tree(_thought_label(root))
    seen = {root_id}

    def add_children(node: Tree, thought: Thought, depth: int) -> None:
        children = sorted(
            (
                thought_index[child_id]
                for child_id in thought.children_ids
                if child_id in thought_index and child_id not in seen
            ),
            key=lambda t: t.rank,
        )
        if not children:
            return
        if depth >= max_depth_display:
            hidden = _count_hidden(thought_index, thought)
            node.add(Text(f"... (+{hidden} deeper)", style=Color.DIM.value))
            return
        for child in children:
            seen.add(child.id)
            add_children(node.add(_thought_label(child)), child, depth + 1)

    add_children(tree, root, 0)
    return tree


# ============================================================================
# Pull Console
# ============================================================================


class PullConsole:
    """Rich-formatted progress and results of a pull."""

    def __init__(self, config: OutputConfig | None = None, console: Console | None = None):
        self.config = config or OutputConfig.from_env()
        self.console = console or Console(no_color=not self.config.colors, highlight=False)

    def emit_start(self, thought_ids: list[ThoughtId]) -> None:
        text = Text()
        text.append(f"{Symbol.PULL.value} ", style=f"bold {Color.PULL.value}")
        text.append("pull ", style="bold")
        text.append(", ".join(thought_ids), style=Color.DIM.value)
        self.console.print(text)

    def emit_level(self, root_id: ThoughtId, delta: ThoughtIndices) -> None:
        pending = sum(1 for t in delta.thought_index.values() if t.pending)
        text = Text()
        text.append(f"{Symbol.LEVEL.value} ", style=Color.LEVEL.value)
        text.append(root_id, style="bold")
        text.append(
            f" +{len(delta.thought_index)} thoughts, +{len(delta.lexeme_index)} lexemes",
            style=Color.DIM.value,
        )
        if pending:
            text.append(f" ({pending} pending)", style=Color.PENDING.value)
        self.console.print(text)

    def emit_budget(self, total: int, max_thoughts: int, depth: int, max_depth: int) -> None:
        self.console.print(create_budget_gauge(total, max_thoughts, depth, max_depth))

    def emit_tree(self, thought_index: Mapping[ThoughtId, Thought], root_id: ThoughtId) -> None:
        self.console.print(build_outline_tree(thought_index, root_id, self.config.max_depth_display))

    def emit_done(self, thoughts: int, pending: int) -> None:
        text = Text()
        text.append(f"{Symbol.LOADED.value} ", style=f"bold {Color.LOADED.value}")
        text.append(f"pulled {thoughts} thoughts", style="bold")
        if pending:
            text.append(f" ({pending} pending)", style=Color.PENDING.value)
        self.console.print(text)

    def emit_error(self, error: BaseException) -> None:
        text = Text()
        text.append(f"{Symbol.ERROR.value} ", style=f"bold {Color.ERROR.value}")
        text.append(f"{type(error).__name__}: {error}", style=Color.ERROR.value)
        self.console.print(text)


__all__ = [
    "Color",
    "OutputConfig",
    "PullConsole",
    "Symbol",
    "build_outline_tree",
    "create_budget_gauge",
]
