"""
Unit tests for pull(), which merges descendant deltas into the store.
"""

import asyncio

import pytest

from outliner.config import PullConfig
from outliner.pull import pull
from outliner.types import HOME_TOKEN

TREE = """
    R
      A
        A1
    S
      T
"""


class TestPull:
    @pytest.mark.asyncio
    async def test_merges_every_level(self, provider, store, seed):
        await seed(provider, TREE)

        pulled = await pull(store, provider, [HOME_TOKEN])

        thoughts = store.get_state().thoughts.thought_index
        assert {"R", "A", "A1", "S", "T"} <= set(thoughts)
        assert set(pulled.thought_index) == {HOME_TOKEN, "R", "A", "A1", "S", "T"}
        assert not thoughts[HOME_TOKEN].pending

    @pytest.mark.asyncio
    async def test_on_level_called_after_merge(self, provider, store, seed):
        await seed(provider, TREE)
        seen = []

        def on_level(root, delta):
            # the delta is already visible in the store
            thoughts = store.get_state().thoughts.thought_index
            assert all(thoughts[i] is delta.thought_index[i] for i in delta.thought_index)
            seen.append((root, set(delta.thought_index)))

        await pull(store, provider, ["R"], on_level=on_level)

        assert seen == [("R", {"R"}), ("R", {"A"}), ("R", {"A1"})]

    @pytest.mark.asyncio
    async def test_multiple_roots(self, provider, store, seed):
        await seed(provider, TREE)
        roots = []

        await pull(store, provider, ["R", "S", "R"], on_level=lambda root, _d: roots.append(root))

        assert set(roots) == {"R", "S"}
        assert roots.count("S") == 2
        assert roots.count("R") == 3

    @pytest.mark.asyncio
    async def test_no_roots(self, provider, store):
        assert not await pull(store, provider, [])

    @pytest.mark.asyncio
    async def test_config_applies_to_every_session(self, provider, store, seed):
        await seed(provider, TREE)

        await pull(store, provider, ["R", "S"], PullConfig(max_depth=1))

        thoughts = store.get_state().thoughts.thought_index
        assert thoughts["A"].pending
        assert "A1" not in thoughts
        assert not thoughts["T"].pending

    @pytest.mark.asyncio
    async def test_waits_for_push(self, provider, store, seed):
        await seed(provider, TREE)
        store.set_is_pushing(True)

        task = asyncio.create_task(pull(store, provider, ["R"]))
        await asyncio.sleep(0.01)
        assert "R" not in store.get_state().thoughts.thought_index

        store.set_is_pushing(False)
        await asyncio.wait_for(task, timeout=1)
        assert "A1" in store.get_state().thoughts.thought_index

    @pytest.mark.asyncio
    async def test_on_complete_reports_session_stats(self, provider, store, seed):
        await seed(provider, TREE)
        finished = {}

        await pull(
            store,
            provider,
            ["R", "S"],
            on_complete=lambda root, stats: finished.update({root: stats}),
        )

        assert set(finished) == {"R", "S"}
        assert finished["R"].levels == 3
        assert finished["R"].enqueued == 2
        assert finished["S"].enqueued == 1
