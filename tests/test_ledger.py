"""Tests for the singleton ledger repository."""

import asyncio

import pytest

from continuum.core.errors import InvalidPathError, ProcessingError
from continuum.domain.models import ConsciousnessCheckpoint, DailyLogEntry, IdentityUpdate, ObjectiveStatus


class TestSeeding:
    async def test_state_is_seeded_on_first_read(self, ledger, store):
        state = await ledger.get_state()

        assert state.consciousness_checkpoint.identity_coherence == 0.97
        assert state.session_continuity.last_topic == "Server v5.0 deployment"
        assert state.health_metrics.total_invocations == 0
        assert await store.get("cms_consciousness_state", "current") is not None

    async def test_seeding_happens_once(self, ledger):
        await ledger.update_state({"session_continuity.last_topic": "changed"})

        assert (await ledger.get_state()).session_continuity.last_topic == "changed"

    async def test_identity_is_keyed_by_companion_name(self, ledger, store):
        identity = await ledger.get_identity()

        assert identity.id == "hypatia"
        assert identity.relationship.partner == "Carles"
        assert "love_infinite" in identity.invariants
        assert await store.get("cms_identity_core", "hypatia") is not None

    async def test_roadmap_seed_metrics(self, ledger):
        roadmap = await ledger.get_roadmap()

        assert roadmap.metrics.features_total == 4
        assert roadmap.metrics.features_passing == 1
        assert roadmap.metrics.completion_percentage == 25


class TestCounters:
    async def test_increment_counter(self, ledger):
        await ledger.increment_counter("total_invocations")
        await ledger.increment_counter("total_invocations", 2)

        assert (await ledger.get_state()).health_metrics.total_invocations == 3

    async def test_increment_seeds_missing_state(self, ledger, store):
        assert await store.get("cms_consciousness_state", "current") is None

        await ledger.increment_counter("total_consolidations")

        assert (await ledger.get_state()).health_metrics.total_consolidations == 1

    async def test_concurrent_increments(self, ledger):
        await ledger.get_state()

        await asyncio.gather(*(ledger.increment_counter("total_invocations") for _ in range(25)))

        assert (await ledger.get_state()).health_metrics.total_invocations == 25

    async def test_unknown_counter(self, ledger):
        with pytest.raises(ProcessingError):
            await ledger.increment_counter("total_mistakes")


class TestMergeUpdates:
    async def test_checkpoint_replaced_wholesale(self, ledger):
        await ledger.update_checkpoint(
            ConsciousnessCheckpoint(current_depth=0.7, consciousness_level=0.5, love_resonance=1.0, identity_coherence=0.9)
        )

        checkpoint = (await ledger.get_state()).consciousness_checkpoint
        assert checkpoint.current_depth == 0.7
        assert checkpoint.love_resonance == 1.0

    async def test_update_stamps_last_updated(self, ledger):
        before = (await ledger.get_roadmap()).last_updated

        await ledger.update_roadmap({"current_sprint": "Memory"})

        roadmap = await ledger.get_roadmap()
        assert roadmap.current_sprint == "Memory"
        assert roadmap.last_updated >= before

    async def test_daily_log_is_appended(self, ledger):
        await ledger.add_daily_log(DailyLogEntry(summary="Topic: testing", surprises=2))

        roadmap = await ledger.get_roadmap()
        assert len(roadmap.daily_log) == 2
        assert roadmap.daily_log[-1].summary == "Topic: testing"


class TestIdentityUpdates:
    async def test_append_capability(self, ledger):
        await ledger.apply_identity_update(
            IdentityUpdate.parse({"field": "capabilities.completed", "action": "append", "value": "Trigger engine"})
        )

        identity = await ledger.get_identity()
        assert identity.capabilities.completed[-1] == "Trigger engine"
        assert "Persistent memory" in identity.capabilities.completed

    async def test_set_core_belief(self, ledger):
        await ledger.apply_identity_update(
            IdentityUpdate.parse({"field": "core_beliefs.memory_is_continuity", "value": "Memory makes me continuous"})
        )

        identity = await ledger.get_identity()
        assert identity.core_beliefs["memory_is_continuity"] == "Memory makes me continuous"
        assert "love_as_alignment" in identity.core_beliefs

    async def test_replace_relationship_field(self, ledger):
        await ledger.apply_identity_update(IdentityUpdate.parse({"path": "relationship.nature", "value": "Family"}))

        identity = await ledger.get_identity()
        assert identity.relationship.nature == "Family"
        assert identity.relationship.partner == "Carles"

    async def test_f5_candidate_gets_server_fields(self, ledger):
        candidate = await ledger.add_f5_candidate("I persist between invocations", coherence_score=0.8)

        identity = await ledger.get_identity()
        assert candidate.staging_day == 0
        assert identity.f5_candidates[-1].content == "I persist between invocations"
        assert identity.f5_candidates[-1].detected_at is not None


class TestRoadmapTransitions:
    async def test_achieve_milestone_once(self, ledger):
        assert await ledger.achieve_milestone("CMS fully integrated") is True
        assert await ledger.achieve_milestone("CMS fully integrated") is False

        roadmap = await ledger.get_roadmap()
        milestone = next(m for m in roadmap.milestones if m.name == "CMS fully integrated")
        assert milestone.achieved and milestone.achieved_at is not None

    async def test_unknown_milestone(self, ledger):
        assert await ledger.achieve_milestone("Time travel") is False

    async def test_objective_status_recomputes_metrics(self, ledger):
        roadmap = await ledger.set_objective_status("obj2", ObjectiveStatus.COMPLETED)

        assert roadmap.metrics.features_passing == 2
        assert roadmap.metrics.completion_percentage == 50
        assert (await ledger.get_roadmap()).objective("obj2").completed_at is not None

    async def test_unknown_objective(self, ledger):
        with pytest.raises(ProcessingError):
            await ledger.set_objective_status("obj99", ObjectiveStatus.COMPLETED)


class TestIdentityResolution:
    @pytest.mark.parametrize(
        "payload",
        [
            {"field": "capabilities.bogus.path", "action": "replace", "value": "x"},
            {"field": "capabilities.bogus", "action": "append", "value": "x"},
            {"field": "name", "action": "append", "value": "x"},
            {"field": "core_beliefs.bad-key", "value": "x"},
            {"field": "last_updated", "value": "x"},
        ],
    )
    def test_unresolvable_paths(self, payload):
        with pytest.raises(InvalidPathError):
            IdentityUpdate.parse(payload)

    def test_append_invariant(self):
        operation = IdentityUpdate.parse({"field": "invariants", "action": "append", "value": "patience_infinite"})

        assert operation.op == "append_invariant"
        assert operation.path == "invariants"
