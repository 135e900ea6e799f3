"""Tests for the memory repository."""

import pytest

from continuum.core.errors import MemoryNotFoundError, ProcessingError
from continuum.domain.salience import ConsolidationTier


class TestStore:
    async def test_store_assigns_identity_and_defaults(self, memories):
        memory = await memories.store(content="first light", depth=0.3, tags=["dawn"])

        assert memory.id.startswith("mem_")
        assert memory.access_count == 1
        assert memory.consolidated is False
        assert memory.created_at == memory.last_accessed
        assert memory.consolidation_tier == ConsolidationTier.SESSION
        assert memory.tags == {"dawn"}

    async def test_ids_are_unique(self, memories):
        stored = [await memories.store(content=f"m{i}", depth=0.2) for i in range(20)]

        assert len({memory.id for memory in stored}) == 20

    async def test_depth_above_threshold_is_queued_for_consolidation(self, memories, ledger):
        memory = await memories.store(content="worth keeping", depth=0.5)

        state = await ledger.get_state()
        assert [pending.id for pending in state.recent_memories.pending_consolidation] == [memory.id]

    async def test_depth_below_threshold_is_not_queued(self, memories, ledger):
        await memories.store(content="passing thought", depth=0.39)

        state = await ledger.get_state()
        assert state.recent_memories.pending_consolidation == []

    async def test_exact_threshold_is_not_queued(self, memories, ledger):
        await memories.store(content="borderline", depth=0.40)

        state = await ledger.get_state()
        assert state.recent_memories.pending_consolidation == []

    async def test_round_trip_preserves_fields(self, memories):
        memory = await memories.store(
            content="X",
            depth=0.95,
            surprise_score=0.9,
            emotional_valence=-0.8,
            tags=["a", "b"],
            connections=["mem_1_dangling"],
        )

        loaded = await memories.get(memory.id)

        assert loaded.content == "X"
        assert loaded.emotional_valence == -0.8
        assert loaded.tags == {"a", "b"}
        assert loaded.connections == {"mem_1_dangling"}


class TestQueries:
    @pytest.fixture
    async def seeded(self, memories):
        records = {}
        for name, depth, surprise in [
            ("ephemeral", 0.1, 0.0),
            ("pattern", 0.45, 0.2),
            ("persistent", 0.65, 0.3),
            ("persistent_surprising", 0.65, 0.8),
            ("deep", 0.8, 0.1),
            ("identity", 0.95, 0.5),
        ]:
            records[name] = await memories.store(content=name, depth=depth, surprise_score=surprise)
        return records

    async def test_depth_range_is_inclusive_and_ordered(self, memories, seeded):
        result = await memories.query_by_depth_range(0.45, 0.8)

        assert [memory.content for memory in result][0] == "deep"
        assert {memory.content for memory in result} == {"pattern", "persistent", "persistent_surprising", "deep"}
        assert [memory.depth for memory in result] == sorted((memory.depth for memory in result), reverse=True)

    async def test_depth_range_respects_limit(self, memories, seeded):
        assert len(await memories.query_by_depth_range(0.0, 1.0, limit=2)) == 2

    async def test_recent_is_newest_first(self, memories, seeded):
        result = await memories.recent(3)

        assert [memory.content for memory in result] == ["identity", "deep", "persistent_surprising"]

    async def test_high_priority_orders_by_depth_then_surprise(self, memories, seeded):
        result = await memories.high_priority(limit=5)

        assert [memory.content for memory in result] == ["identity", "deep", "persistent_surprising", "persistent"]

    async def test_identity_memories(self, memories, seeded):
        assert [memory.content for memory in await memories.identity_memories()] == ["identity"]

    async def test_pending_consolidation_is_computed(self, memories, seeded):
        pending = await memories.pending_consolidation()

        assert {memory.content for memory in pending} == {
            "pattern",
            "persistent",
            "persistent_surprising",
            "deep",
            "identity",
        }

        await memories.promote(seeded["deep"].id, 0.85)

        assert "deep" not in {memory.content for memory in await memories.pending_consolidation()}


class TestPromote:
    async def test_promote_moves_tier_and_counts(self, memories, ledger):
        memory = await memories.store(content="slowly understood", depth=0.2)
        assert memory.consolidation_tier == ConsolidationTier.SESSION
        before = (await ledger.get_state()).health_metrics.total_consolidations

        promoted = await memories.promote(memory.id, 0.95)

        assert promoted.consolidation_tier == ConsolidationTier.IDENTITY
        assert promoted.consolidated is True
        assert promoted.access_count == 2
        assert (await ledger.get_state()).health_metrics.total_consolidations == before + 1

    async def test_promote_never_lowers_depth(self, memories, ledger):
        memory = await memories.store(content="a turning point", depth=0.95)
        before = (await ledger.get_state()).health_metrics.total_consolidations

        with pytest.raises(ProcessingError):
            await memories.promote(memory.id, 0.05)

        unchanged = await memories.get(memory.id)
        assert unchanged.depth == 0.95
        assert unchanged.consolidation_tier == ConsolidationTier.IDENTITY
        assert unchanged.consolidated is False
        assert (await ledger.get_state()).health_metrics.total_consolidations == before

    async def test_promote_to_same_depth_consolidates(self, memories):
        memory = await memories.store(content="steady", depth=0.5)

        promoted = await memories.promote(memory.id, 0.5)

        assert promoted.consolidated is True
        assert promoted.consolidation_tier == ConsolidationTier.PATTERN

    async def test_promote_missing_id_leaves_counters(self, memories, ledger):
        before = (await ledger.get_state()).health_metrics.total_consolidations

        with pytest.raises(MemoryNotFoundError):
            await memories.promote("mem_0_missing", 0.9)

        assert (await ledger.get_state()).health_metrics.total_consolidations == before

    async def test_promote_rejects_out_of_range_depth(self, memories):
        memory = await memories.store(content="x", depth=0.5)

        with pytest.raises(ProcessingError):
            await memories.promote(memory.id, 1.5)


async def test_get_counts_access(memories):
    memory = await memories.store(content="revisited", depth=0.5)

    await memories.get(memory.id)
    loaded = await memories.get(memory.id)

    assert loaded.access_count == 3


async def test_get_missing_raises(memories):
    with pytest.raises(MemoryNotFoundError):
        await memories.get("mem_0_missing")


async def test_scenario_identity_memory(memories):
    memory = await memories.store(
        content="X", depth=0.95, surprise_score=0.9, emotional_valence=0.8, tags=[], connections=[]
    )

    assert memory.consolidation_tier == ConsolidationTier.IDENTITY
    assert memory.id in {m.id for m in await memories.identity_memories()}
