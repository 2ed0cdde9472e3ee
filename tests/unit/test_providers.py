"""
Tests for data provider implementations.

The same tests run against every provider.
"""

import pytest

from outliner.providers import (
    DataProvider,
    InMemoryProvider,
    ProviderConfig,
    ProviderType,
    SQLiteProvider,
    create_provider,
)
from outliner.types import Lexeme, Thought, ThoughtWithChildren


@pytest.fixture(params=["sqlite", "inmemory"])
def data_provider(request, tmp_path) -> DataProvider:
    """Create a provider for testing."""
    if request.param == "sqlite":
        provider = SQLiteProvider(db_path=tmp_path / "test.db")
        yield provider
        provider.close()
    else:
        yield InMemoryProvider()


async def add_tree(provider: DataProvider) -> None:
    await provider.update_thought(
        Thought(id="r", value="R", children_map={"a": "a", "=pin": "p"}, last_updated="t0")
    )
    await provider.update_thought(Thought(id="a", value="A", rank=1, parent_id="r"))
    await provider.update_thought(Thought(id="p", value="=pin", rank=2, parent_id="r"))


class TestThoughtOperations:
    """Tests for thought reads and writes."""

    @pytest.mark.asyncio
    async def test_round_trip(self, data_provider):
        thought = Thought(
            id="r",
            value="R",
            rank=1.5,
            parent_id="__ROOT__",
            children_map={"a": "a"},
            last_updated="2024-01-01T00:00:00.000+00:00",
            updated_by="abc",
            pending=True,
        )
        await data_provider.update_thought(thought)

        assert await data_provider.get_thought_by_id("r") == thought

    @pytest.mark.asyncio
    async def test_get_thoughts_by_ids_keeps_order_and_gaps(self, data_provider):
        await add_tree(data_provider)

        thoughts = await data_provider.get_thoughts_by_ids(["a", "missing", "r", "a"])

        assert [t.id if t else None for t in thoughts] == ["a", None, "r", "a"]

    @pytest.mark.asyncio
    async def test_update_replaces(self, data_provider):
        await data_provider.update_thought(Thought(id="a", value="old"))
        await data_provider.update_thought(Thought(id="a", value="new"))

        assert (await data_provider.get_thought_by_id("a")).value == "new"

    @pytest.mark.asyncio
    async def test_delete(self, data_provider):
        await add_tree(data_provider)

        assert await data_provider.delete_thought("a")
        assert not await data_provider.delete_thought("a")
        assert await data_provider.get_thought_by_id("a") is None

    @pytest.mark.asyncio
    async def test_get_all_thoughts(self, data_provider):
        await add_tree(data_provider)

        assert {t.id for t in await data_provider.get_all_thoughts()} == {"r", "a", "p"}


class TestThoughtWithChildren:
    """Tests for the inline children read."""

    @pytest.mark.asyncio
    async def test_children_inlined(self, data_provider):
        await add_tree(data_provider)

        record = await data_provider.get_thought_with_children("r")

        assert isinstance(record, ThoughtWithChildren)
        assert record.id == "r"
        assert set(record.children) == {"a", "p"}
        assert record.children["p"].value == "=pin"

    @pytest.mark.asyncio
    async def test_missing_children_omitted(self, data_provider):
        await add_tree(data_provider)
        await data_provider.delete_thought("a")

        record = await data_provider.get_thought_with_children("r")

        assert set(record.children) == {"p"}

    @pytest.mark.asyncio
    async def test_unknown_id(self, data_provider):
        assert await data_provider.get_thought_with_children("missing") is None


class TestLexemeOperations:
    """Tests for lexeme reads and writes."""

    @pytest.mark.asyncio
    async def test_round_trip(self, data_provider):
        lexeme = Lexeme(lemma="dog", contexts=["a", "b"], created="t0", last_updated="t1")
        await data_provider.update_lexeme("k", lexeme)

        assert await data_provider.get_lexemes_by_ids(["k", "missing"]) == [lexeme, None]
        assert await data_provider.get_all_lexemes() == {"k": lexeme}

    @pytest.mark.asyncio
    async def test_empty_batch(self, data_provider):
        assert await data_provider.get_lexemes_by_ids([]) == []


class TestSQLitePersistence:
    """Tests specific to the SQLite provider."""

    @pytest.mark.asyncio
    async def test_persists_across_connections(self, tmp_path):
        db_path = tmp_path / "persist.db"
        provider = SQLiteProvider(db_path)
        await add_tree(provider)
        provider.close()

        reopened = SQLiteProvider(db_path)
        try:
            record = await reopened.get_thought_with_children("r")
            assert record.thought.children_map == {"a": "a", "=pin": "p"}
        finally:
            reopened.close()


class TestProviderFactory:
    """Tests for provider configuration."""

    def test_default_config(self):
        config = ProviderConfig()
        assert config.provider_type == ProviderType.INMEMORY

    def test_create_inmemory(self):
        assert isinstance(create_provider(ProviderConfig()), InMemoryProvider)

    def test_create_sqlite(self, tmp_path):
        provider = create_provider(
            ProviderConfig(
                provider_type=ProviderType.SQLITE,
                connection_string=str(tmp_path / "x.db"),
            )
        )
        assert isinstance(provider, SQLiteProvider)
        provider.close()

    def test_sqlite_requires_path(self):
        with pytest.raises(ValueError, match="connection_string"):
            create_provider(ProviderConfig(provider_type=ProviderType.SQLITE))
