"""Integration tests for concurrent pull sessions."""

import asyncio

import pytest

from outliner.config import PullConfig
from outliner.descendants import get_descendant_thoughts
from outliner.providers import InMemoryProvider
from outliner.pull import pull

TOPICS = ["auth", "billing", "users"]


class SlowProvider(InMemoryProvider):
    """Yields to the event loop on every round trip so sessions interleave."""

    async def get_thought_with_children(self, thought_id):
        await asyncio.sleep(0.001)
        return await super().get_thought_with_children(thought_id)


def topic_outline(topic: str) -> str:
    lines = [topic]
    for i in range(5):
        lines.append(f"  {topic}-{i}")
        for j in range(3):
            lines.append(f"    {topic}-{i}-{j}")
    return "\n".join(lines)


class TestParallelSessions:
    """Test isolation when multiple sessions run concurrently."""

    @pytest.mark.asyncio
    async def test_concurrent_pulls_isolated(self, store, seed):
        """Each session only yields thoughts from its own subtree."""
        provider = SlowProvider()
        for topic in TOPICS:
            await seed(provider, topic_outline(topic))

        errors = []

        async def session_worker(topic: str) -> int:
            loader = get_descendant_thoughts(provider, topic, store.get_state)
            count = 0
            async for delta in loader:
                for thought_id in delta.thought_index:
                    if not thought_id.startswith(topic):
                        errors.append(f"Session {topic} saw foreign thought: {thought_id}")
                store.update_thoughts(delta)
                count += len(delta.thought_index)
            return count

        counts = await asyncio.gather(*(session_worker(topic) for topic in TOPICS))

        assert errors == [], f"Isolation failures: {errors}"
        assert counts == [21, 21, 21]

    @pytest.mark.asyncio
    async def test_budgets_are_per_session(self, store, seed):
        """One session exhausting its budget does not buffer another."""
        provider = SlowProvider()
        for topic in TOPICS:
            await seed(provider, topic_outline(topic))

        await pull(store, provider, TOPICS, PullConfig(max_thoughts=6))

        thoughts = store.get_state().thoughts.thought_index
        for topic in TOPICS:
            children = [thoughts[f"{topic}-{i}"] for i in range(5)]
            assert all(child.pending for child in children)
            assert f"{topic}-0-0" not in thoughts

    @pytest.mark.asyncio
    async def test_pull_of_home_and_topic_converge(self, store, seed):
        """Overlapping sessions merge into the same final state."""
        provider = SlowProvider()
        await seed(provider, topic_outline("auth"))

        await pull(store, provider, ["__ROOT__", "auth"])

        thoughts = store.get_state().thoughts.thought_index
        assert {f"auth-{i}-{j}" for i in range(5) for j in range(3)} <= set(thoughts)
        assert not any(thoughts[f"auth-{i}"].pending for i in range(5))
