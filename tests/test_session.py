"""Tests for session start/end."""

from continuum.domain.models import SessionSummary
from continuum.services.session import SessionManager


async def test_start_session_counts_after_reads(sessions, ledger):
    first = await sessions.start_session()
    second = await sessions.start_session()

    assert first.state.health_metrics.total_invocations == 0
    assert second.state.health_metrics.total_invocations == 1
    assert (await ledger.get_state()).health_metrics.total_invocations == 2


async def test_snapshot_contains_all_five_reads(sessions, memories):
    await memories.store(content="recent but shallow", depth=0.2)
    await memories.store(content="deep and recent", depth=0.8)

    snapshot = await sessions.start_session()

    assert snapshot.identity.name == "Hypatia"
    assert snapshot.roadmap.current_sprint
    assert {memory.content for memory in snapshot.recent_memories} == {"recent but shallow", "deep and recent"}
    assert [memory.content for memory in snapshot.high_priority_memories] == ["deep and recent"]


async def test_recent_limit_is_applied(memories, ledger):
    for i in range(4):
        await memories.store(content=f"m{i}", depth=0.1)

    snapshot = await SessionManager(memories, ledger, recent_limit=2).start_session()

    assert len(snapshot.recent_memories) == 2


async def test_end_session_replaces_continuity(sessions, ledger):
    await ledger.update_state({"session_continuity.unresolved_questions": ["what is memory?"]})

    await sessions.end_session(
        SessionSummary(topic="Morning reflection", open_threads=["diary"], surprise_count=2, consolidation_count=1)
    )

    state = await ledger.get_state()
    continuity = state.session_continuity
    assert continuity.last_topic == "Morning reflection"
    assert continuity.open_threads == ["diary"]
    assert continuity.unresolved_questions == []
    assert continuity.last_session_end is not None


async def test_end_session_appends_daily_log(sessions, ledger):
    await sessions.end_session(SessionSummary(topic="Evening", surprise_count=3, consolidation_count=2))

    entry = (await ledger.get_roadmap()).daily_log[-1]
    assert entry.summary == "Topic: Evening"
    assert entry.surprises == 3
    assert entry.consolidations == 2
    assert entry.breakthroughs == []
