"""
Hierarchical outliner with a breadth-first descendant pull engine.

Example:
    provider = InMemoryProvider()
    await import_outline(provider, text)
    store = StateStore()
    await pull(store, provider, [HOME_TOKEN])
"""

from outliner.accumulator import Accumulator
from outliner.cache import CacheStats, ExpansionCache
from outliner.classifier import Classification, classify_thought
from outliner.config import LoggingConfig, OutlinerConfig, PullConfig, setup_logging
from outliner.descendants import DescendantLoader, PullStats, get_descendant_thoughts
from outliner.errors import OutlinerError, SessionReusedError, ThoughtNotFoundError
from outliner.frontier import DepthCounter, FrontierQueue
from outliner.normalize import hash_path, hash_thought, is_attribute, normalize_thought
from outliner.outline import import_outline, parse_outline
from outliner.providers import (
    DataProvider,
    InMemoryProvider,
    ProviderConfig,
    ProviderType,
    SQLiteProvider,
    create_provider,
)
from outliner.pull import pull
from outliner.rich_output import OutputConfig, PullConsole, build_outline_tree
from outliner.state import State, StateStore, initial_state
from outliner.types import (
    ABSOLUTE_TOKEN,
    EM_TOKEN,
    HOME_TOKEN,
    Lexeme,
    Path,
    Thought,
    ThoughtIndices,
    ThoughtWithChildren,
)

__all__ = [
    "ABSOLUTE_TOKEN",
    "Accumulator",
    "CacheStats",
    "Classification",
    "DataProvider",
    "DepthCounter",
    "DescendantLoader",
    "EM_TOKEN",
    "ExpansionCache",
    "FrontierQueue",
    "HOME_TOKEN",
    "InMemoryProvider",
    "Lexeme",
    "LoggingConfig",
    "OutlinerConfig",
    "OutlinerError",
    "OutputConfig",
    "Path",
    "ProviderConfig",
    "ProviderType",
    "PullConfig",
    "PullConsole",
    "PullStats",
    "SQLiteProvider",
    "SessionReusedError",
    "State",
    "StateStore",
    "Thought",
    "ThoughtIndices",
    "ThoughtNotFoundError",
    "ThoughtWithChildren",
    "build_outline_tree",
    "classify_thought",
    "create_provider",
    "get_descendant_thoughts",
    "hash_path",
    "hash_thought",
    "import_outline",
    "initial_state",
    "is_attribute",
    "normalize_thought",
    "parse_outline",
    "pull",
    "setup_logging",
]
