"""
Data provider abstraction for pluggable storage.

Provides the DataProvider protocol with SQLite and InMemory implementations and
configurable provider selection. All reads tolerate unknown ids by returning
None in place of the missing record rather than failing the batch.
"""

from __future__ import annotations

import json
import sqlite3
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .types import Lexeme, Thought, ThoughtId, ThoughtWithChildren


class ProviderType(Enum):
    """Type of data provider."""

    SQLITE = "sqlite"
    INMEMORY = "inmemory"


@dataclass
class ProviderConfig:
    """Configuration for a data provider."""

    provider_type: ProviderType = ProviderType.INMEMORY
    connection_string: str | None = None
    options: dict[str, Any] = field(default_factory=dict)


class DataProvider(ABC):
    """Protocol for thought storage providers."""

    name: str = "provider"

    @abstractmethod
    async def get_thought_with_children(self, thought_id: ThoughtId) -> ThoughtWithChildren | None:
        """
        Get a thought with all of its immediate children inlined.

        Args:
            thought_id: Thought ID

        Returns:
            ThoughtWithChildren or None if not found
        """

    @abstractmethod
    async def get_thoughts_by_ids(self, ids: Sequence[ThoughtId]) -> list[Thought | None]:
        """
        Get thoughts by ID.

        Args:
            ids: Thought IDs

        Returns:
            One entry per id, None for unknown ids
        """

    @abstractmethod
    async def get_lexemes_by_ids(self, keys: Sequence[str]) -> list[Lexeme | None]:
        """
        Get lexemes by content fingerprint.

        Args:
            keys: Fingerprints from hash_thought

        Returns:
            One entry per key, None for unknown keys
        """

    @abstractmethod
    async def update_thought(self, thought: Thought) -> None:
        """Insert or replace a thought."""

    @abstractmethod
    async def update_lexeme(self, key: str, lexeme: Lexeme) -> None:
        """Insert or replace a lexeme."""

    @abstractmethod
    async def delete_thought(self, thought_id: ThoughtId) -> bool:
        """
        Delete a thought.

        Returns:
            True if deleted, False if not found
        """

    @abstractmethod
    async def get_all_thoughts(self) -> list[Thought]:
        """Get all thoughts (for export)."""

    @abstractmethod
    async def get_all_lexemes(self) -> dict[str, Lexeme]:
        """Get all lexemes keyed by fingerprint (for export)."""

    async def get_thought_by_id(self, thought_id: ThoughtId) -> Thought | None:
        """Get a single thought."""
        return (await self.get_thoughts_by_ids([thought_id]))[0]


class InMemoryProvider(DataProvider):
    """In-memory implementation for testing."""

    name = "inmemory"

    def __init__(self) -> None:
        """Initialize in-memory storage."""
        self._thoughts: dict[ThoughtId, Thought] = {}
        self._lexemes: dict[str, Lexeme] = {}

    async def get_thought_with_children(self, thought_id: ThoughtId) -> ThoughtWithChildren | None:
        """Get a thought with its children inlined."""
        thought = self._thoughts.get(thought_id)
        if thought is None:
            return None
        children = {
            child_id: self._thoughts[child_id]
            for child_id in thought.children_ids
            if child_id in self._thoughts
        }
        return ThoughtWithChildren(thought=thought, children=children)

    async def get_thoughts_by_ids(self, ids: Sequence[ThoughtId]) -> list[Thought | None]:
        """Get thoughts by ID."""
        return [self._thoughts.get(thought_id) for thought_id in ids]

    async def get_lexemes_by_ids(self, keys: Sequence[str]) -> list[Lexeme | None]:
        """Get lexemes by fingerprint."""
        return [self._lexemes.get(key) for key in keys]

    async def update_thought(self, thought: Thought) -> None:
        """Insert or replace a thought."""
        self._thoughts[thought.id] = thought

    async def update_lexeme(self, key: str, lexeme: Lexeme) -> None:
        """Insert or replace a lexeme."""
        self._lexemes[key] = lexeme

    async def delete_thought(self, thought_id: ThoughtId) -> bool:
        """Delete a thought."""
        if thought_id not in self._thoughts:
            return False
        del self._thoughts[thought_id]
        return True

    async def get_all_thoughts(self) -> list[Thought]:
        """Get all thoughts."""
        return list(self._thoughts.values())

    async def get_all_lexemes(self) -> dict[str, Lexeme]:
        """Get all lexemes."""
        return dict(self._lexemes)


class SQLiteProvider(DataProvider):
    """
    SQLite implementation for persistence.

    The sqlite3 calls run synchronously inside the async methods and block the
    event loop for their duration.
    """

    name = "sqlite"

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize SQLite provider.

        Args:
            db_path: Path to database file
        """
        self._db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self._db_path))
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        conn = self._get_conn()
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS thoughts (
                id TEXT PRIMARY KEY,
                value TEXT,
                rank REAL NOT NULL DEFAULT 0,
                parent_id TEXT,
                children_map TEXT NOT NULL,
                last_updated TEXT NOT NULL,
                updated_by TEXT NOT NULL,
                pending INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS lexemes (
                key TEXT PRIMARY KEY,
                lemma TEXT NOT NULL,
                contexts TEXT NOT NULL,
                created TEXT NOT NULL,
                last_updated TEXT NOT NULL,
                updated_by TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_thoughts_parent ON thoughts(parent_id);
        """
        )
        conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @staticmethod
    def _row_to_thought(row: sqlite3.Row) -> Thought:
        return Thought(
            id=row["id"],
            value=row["value"],
            rank=row["rank"],
            parent_id=row["parent_id"],
            children_map=json.loads(row["children_map"]),
            last_updated=row["last_updated"],
            updated_by=row["updated_by"],
            pending=bool(row["pending"]),
        )

    @staticmethod
    def _row_to_lexeme(row: sqlite3.Row) -> Lexeme:
        return Lexeme(
            lemma=row["lemma"],
            contexts=json.loads(row["contexts"]),
            created=row["created"],
            last_updated=row["last_updated"],
            updated_by=row["updated_by"],
        )

    def _select_thoughts(self, ids: Sequence[ThoughtId]) -> dict[ThoughtId, Thought]:
        if not ids:
            return {}
        conn = self._get_conn()
        placeholders = ",".join("?" for _ in ids)
        rows = conn.execute(
            f"SELECT * FROM thoughts WHERE id IN ({placeholders})",
            tuple(ids),
        ).fetchall()
        return {row["id"]: self._row_to_thought(row) for row in rows}

    async def get_thought_with_children(self, thought_id: ThoughtId) -> ThoughtWithChildren | None:
        """Get a thought with its children inlined."""
        thought = self._select_thoughts([thought_id]).get(thought_id)
        if thought is None:
            return None
        found = self._select_thoughts(thought.children_ids)
        children = {
            child_id: found[child_id] for child_id in thought.children_ids if child_id in found
        }
        return ThoughtWithChildren(thought=thought, children=children)

    async def get_thoughts_by_ids(self, ids: Sequence[ThoughtId]) -> list[Thought | None]:
        """Get thoughts by ID."""
        found = self._select_thoughts(list(dict.fromkeys(ids)))
        return [found.get(thought_id) for thought_id in ids]

    async def get_lexemes_by_ids(self, keys: Sequence[str]) -> list[Lexeme | None]:
        """Get lexemes by fingerprint."""
        unique = list(dict.fromkeys(keys))
        if not unique:
            return []
        conn = self._get_conn()
        placeholders = ",".join("?" for _ in unique)
        rows = conn.execute(
            f"SELECT * FROM lexemes WHERE key IN ({placeholders})",
            tuple(unique),
        ).fetchall()
        found = {row["key"]: self._row_to_lexeme(row) for row in rows}
        return [found.get(key) for key in keys]

    async def update_thought(self, thought: Thought) -> None:
        """Insert or replace a thought."""
        conn = self._get_conn()
        conn.execute(
            """
            INSERT OR REPLACE INTO thoughts
                (id, value, rank, parent_id, children_map, last_updated, updated_by, pending)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                thought.id,
                thought.value,
                thought.rank,
                thought.parent_id,
                json.dumps(thought.children_map),
                thought.last_updated,
                thought.updated_by,
                int(thought.pending),
            ),
        )
        conn.commit()

    async def update_lexeme(self, key: str, lexeme: Lexeme) -> None:
        """Insert or replace a lexeme."""
        conn = self._get_conn()
        conn.execute(
            """
            INSERT OR REPLACE INTO lexemes
                (key, lemma, contexts, created, last_updated, updated_by)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                key,
                lexeme.lemma,
                json.dumps(lexeme.contexts),
                lexeme.created,
                lexeme.last_updated,
                lexeme.updated_by,
            ),
        )
        conn.commit()

    async def delete_thought(self, thought_id: ThoughtId) -> bool:
        """Delete a thought."""
        conn = self._get_conn()
        cursor = conn.execute("DELETE FROM thoughts WHERE id = ?", (thought_id,))
        conn.commit()
        return cursor.rowcount > 0

    async def get_all_thoughts(self) -> list[Thought]:
        """Get all thoughts."""
        rows = self._get_conn().execute("SELECT * FROM thoughts").fetchall()
        return [self._row_to_thought(row) for row in rows]

    async def get_all_lexemes(self) -> dict[str, Lexeme]:
        """Get all lexemes."""
        rows = self._get_conn().execute("SELECT * FROM lexemes").fetchall()
        return {row["key"]: self._row_to_lexeme(row) for row in rows}


def create_provider(config: ProviderConfig) -> DataProvider:
    """
    Create a data provider from configuration.

    Args:
        config: Provider configuration

    Returns:
        DataProvider instance
    """
    if config.provider_type == ProviderType.SQLITE:
        if config.connection_string is None:
            raise ValueError("SQLite provider requires connection_string")
        return SQLiteProvider(db_path=config.connection_string)
    elif config.provider_type == ProviderType.INMEMORY:
        return InMemoryProvider()
    else:
        raise ValueError(f"Unsupported provider type: {config.provider_type}")


__all__ = [
    "DataProvider",
    "InMemoryProvider",
    "ProviderConfig",
    "ProviderType",
    "SQLiteProvider",
    "create_provider",
]
