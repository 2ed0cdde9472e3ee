"""
Pytest configuration and fixtures for outliner tests.
"""

import os
import sys
import textwrap
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest
from hypothesis import Phase, Verbosity, settings

# Add project root to path so we can import the outliner package
sys.path.insert(0, str(Path(__file__).parent.parent))

# -----------------------------------------------------------------------------
# Hypothesis Profiles for Test Performance
# -----------------------------------------------------------------------------
# Usage: HYPOTHESIS_PROFILE=fast pytest tests/
#
# Profiles:
#   fast   - 10 examples, minimal phases (quick iteration, ~10x faster)
#   dev    - 50 examples, standard phases (default for local development)
#   ci     - 100 examples, all phases, no deadline (thorough CI testing)
#
# Individual tests may override with @settings(max_examples=N)
# -----------------------------------------------------------------------------

settings.register_profile(
    "fast",
    max_examples=10,
    phases=[Phase.generate],  # Skip shrinking for speed
    verbosity=Verbosity.quiet,
    deadline=None,
)

settings.register_profile(
    "dev",
    max_examples=50,
    phases=[Phase.generate, Phase.target, Phase.shrink],
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.generate, Phase.target, Phase.shrink, Phase.explain],
    verbosity=Verbosity.normal,
    deadline=None,  # CI machines vary in speed
)

# Load profile from environment, default to 'dev'
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))

from outliner.outline import import_outline
from outliner.providers import DataProvider, InMemoryProvider
from outliner.state import StateStore, initial_state
from outliner.types import HOME_TOKEN, ThoughtId


def value_ids() -> Callable[[str], ThoughtId]:
    """id_factory that uses each value as its id, suffixing repeats (=pin, =pin#2, ...)."""
    seen: dict[str, int] = {}

    def make_id(value: str) -> ThoughtId:
        seen[value] = seen.get(value, 0) + 1
        return value if seen[value] == 1 else f"{value}#{seen[value]}"

    return make_id


@pytest.fixture
def provider() -> InMemoryProvider:
    """Provide an empty in-memory provider."""
    return InMemoryProvider()


@pytest.fixture
def store() -> StateStore:
    """Provide a store with the initial state (home expanded, roots pending)."""
    return StateStore(initial_state())


@pytest.fixture
def seed() -> Callable[..., Awaitable[list[ThoughtId]]]:
    """
    Import an outline with readable ids.

    Usage:
        await seed(provider, '''
            R
              A
                A1
        ''')
    """
    make_id = value_ids()

    async def _seed(
        provider: DataProvider,
        outline: str,
        parent_id: ThoughtId = HOME_TOKEN,
    ) -> list[ThoughtId]:
        return await import_outline(
            provider,
            textwrap.dedent(outline).strip("\n"),
            parent_id=parent_id,
            id_factory=make_id,
        )

    return _seed


# Markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "hypothesis: property-based tests")
    config.addinivalue_line("markers", "slow: tests that take >1s")
