"""
Unit tests for rich_output.py.
"""

import os
from io import StringIO
from unittest.mock import patch

from rich.console import Console

from outliner.rich_output import (
    SYMBOL_COLORS,
    OutputConfig,
    PullConsole,
    Symbol,
    build_outline_tree,
    create_budget_gauge,
)
from outliner.types import Lexeme, Thought, ThoughtIndices

# ============================================================================
# Symbol Tests
# ============================================================================


class TestSymbols:
    """Test symbol vocabulary."""

    def test_symbols_are_single_characters(self) -> None:
        for symbol in Symbol:
            assert len(symbol.value) == 1, f"{symbol.name} should be single char"

    def test_no_emoji_in_symbols(self) -> None:
        for symbol in Symbol:
            assert ord(symbol.value) < 0x1F000

    def test_every_symbol_has_a_color(self) -> None:
        assert set(SYMBOL_COLORS) == set(Symbol)


# ============================================================================
# Configuration Tests
# ============================================================================


class TestOutputConfig:
    """Test output configuration."""

    def test_default_config(self) -> None:
        config = OutputConfig()
        assert config.colors is True
        assert config.max_depth_display == 5

    def test_no_color_env(self) -> None:
        with patch.dict(os.environ, {"NO_COLOR": "1"}):
            assert OutputConfig.from_env().colors is False

    def test_outliner_colors_env(self) -> None:
        with patch.dict(os.environ, {"OUTLINER_COLORS": "false"}):
            assert OutputConfig.from_env().colors is False


# ============================================================================
# Budget Gauge Tests
# ============================================================================


class TestBudgetGauge:
    """Test thought budget gauge."""

    def test_gauge_format(self) -> None:
        gauge = create_budget_gauge(50, 100)
        assert gauge.plain == "≡ Thoughts: █████░░░░░ 50/100"

    def test_gauge_with_depth(self) -> None:
        gauge = create_budget_gauge(10, 100, depth=2, max_depth=100)
        assert gauge.plain.endswith("(depth 2/100)")

    def test_gauge_overflow_is_capped(self) -> None:
        gauge = create_budget_gauge(250, 100)
        assert "██████████ 250/100" in gauge.plain

    def test_gauge_zero_budget(self) -> None:
        gauge = create_budget_gauge(1, 0)
        assert "██████████" in gauge.plain


# ============================================================================
# Outline Tree Tests
# ============================================================================


def render(renderable) -> str:
    buffer = StringIO()
    Console(file=buffer, no_color=True, width=80).print(renderable)
    return buffer.getvalue()


def outline() -> dict:
    thoughts = [
        Thought(id="r", value="R", children_map={"b": "b", "a": "a"}),
        Thought(id="a", value="A", rank=1, parent_id="r", children_map={"a1": "a1"}),
        Thought(id="b", value="B", rank=2, parent_id="r", children_map={"b1": "b1"}, pending=True),
        Thought(id="a1", value="A1", parent_id="a", children_map={"a11": "a11"}),
        Thought(id="a11", value="A11", parent_id="a1"),
    ]
    return {t.id: t for t in thoughts}


class TestOutlineTree:
    """Test outline tree rendering."""

    def test_rank_order(self) -> None:
        out = render(build_outline_tree(outline(), "r"))
        assert out.index("A") < out.index("B")

    def test_pending_marked(self) -> None:
        out = render(build_outline_tree(outline(), "r"))
        assert "B ◇ 1 not loaded" in out
        assert "A ◇" not in out

    def test_hidden_depth_summarised(self) -> None:
        out = render(build_outline_tree(outline(), "r", max_depth_display=1))
        assert "... (+2 deeper)" in out
        assert "A1" not in out

    def test_missing_root(self) -> None:
        out = render(build_outline_tree({}, "r"))
        assert "r not loaded" in out


# ============================================================================
# PullConsole Tests
# ============================================================================


class TestPullConsole:
    """Test PullConsole output."""

    def make_console(self) -> tuple[PullConsole, StringIO]:
        buffer = StringIO()
        console = PullConsole(OutputConfig(colors=False), Console(file=buffer, no_color=True))
        return console, buffer

    def test_emit_level(self) -> None:
        console, buffer = self.make_console()
        delta = ThoughtIndices(
            thought_index={"b": outline()["b"]},
            lexeme_index={"k": Lexeme(lemma="b")},
        )
        console.emit_level("r", delta)
        assert "▶ r +1 thoughts, +1 lexemes (1 pending)" in buffer.getvalue()

    def test_emit_start_and_error(self) -> None:
        console, buffer = self.make_console()
        console.emit_start(["r", "s"])
        console.emit_error(ConnectionError("lost"))
        out = buffer.getvalue()
        assert "◆ pull r, s" in out
        assert "✗ ConnectionError: lost" in out

    def test_emit_done(self) -> None:
        console, buffer = self.make_console()
        console.emit_done(5, 2)
        console.emit_done(3, 0)
        out = buffer.getvalue()
        assert "✓ pulled 5 thoughts (2 pending)" in out
        assert "✓ pulled 3 thoughts\n" in out

    def test_emit_tree(self) -> None:
        console, buffer = self.make_console()
        console.emit_tree(outline(), "r")
        assert "A11" in buffer.getvalue()
