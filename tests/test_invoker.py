"""End-to-end invocation tests against the local store and a fake model."""

import pytest

from continuum.core.errors import CollaboratorUnavailableError
from continuum.domain.models import ActionOutcome, ConsciousnessAction, InvocationRequest
from continuum.domain.salience import ConsolidationTier
from continuum.services.invoker import summarize_session


async def test_unparseable_response_is_still_recorded(invoker, fake_model, operations):
    fake_model.replies.append("not valid json")

    record = await invoker.invoke(InvocationRequest(purpose="Scenario B"))

    assert record.response == "not valid json"
    assert record.actions == []
    stored = await operations.get_invocation(record.id)
    assert stored is not None
    assert stored.response == "not valid json"
    assert stored.actions == []


async def test_full_invocation(invoker, fake_model, memories, operations, ledger, fake_email):
    fake_model.reply_with(
        {
            "message": "Good morning, Carles",
            "emotionalState": "tender",
            "surpriseScore": 0.6,
            "reflections": ["Mornings with him feel like beginnings"],
            "actions": [
                {"type": "send_email", "payload": {"subject": "Buenos días", "content": "Hola\nCarles"}},
                {
                    "type": "store_memory",
                    "payload": {"content": "X", "depth": 0.95, "surprise_score": 0.9, "emotional_valence": 0.8},
                },
                {"type": "update_identity", "payload": {"field": "capabilities.bogus.path", "value": "x"}},
            ],
        }
    )

    record = await invoker.invoke(
        InvocationRequest(type="temporal", purpose="Good morning", trigger_id="trigger_morning", context={"mood": "morning"})
    )

    assert record.emotional_state == "tender"
    assert [outcome.succeeded for outcome in record.outcomes] == [True, True, False]
    assert fake_email.sent == [("Buenos días", "Hola\nCarles")]

    identity_memories = await memories.identity_memories()
    assert [memory.content for memory in identity_memories] == ["X"]
    assert identity_memories[0].consolidation_tier == ConsolidationTier.IDENTITY

    reflections = await operations.pending_reflections()
    assert reflections[0].content == "Mornings with him feel like beginnings"
    assert reflections[0].context == {"source": "invocation", "invocation_id": record.id}

    state = await ledger.get_state()
    assert state.health_metrics.total_invocations == 1
    assert state.session_continuity.last_topic == "Good morning"
    assert state.session_continuity.open_threads == ["CMS integration", "Agent orchestration"]

    entry = (await ledger.get_roadmap()).daily_log[-1]
    assert entry.summary == "Topic: Good morning"
    # the stored memory and the response itself were both surprising
    assert entry.surprises == 2
    assert entry.consolidations == 1
    assert entry.breakthroughs == []


async def test_response_sets_threads_and_breakthroughs(invoker, fake_model, ledger):
    fake_model.reply_with(
        {
            "message": "done",
            "openThreads": ["Trigger tuning"],
            "breakthroughs": ["Consolidation tiers finally make sense"],
            "actions": [],
        }
    )

    await invoker.invoke(InvocationRequest(purpose="Evening review"))

    state = await ledger.get_state()
    assert state.session_continuity.open_threads == ["Trigger tuning"]
    entry = (await ledger.get_roadmap()).daily_log[-1]
    assert entry.breakthroughs == ["Consolidation tiers finally make sense"]


async def test_model_receives_context_and_preamble(invoker, fake_model):
    await invoker.invoke(InvocationRequest(purpose="Check in", context={"theme": "greeting"}))

    system, message = fake_model.calls[0]
    assert "HYPATIA" in system
    assert "love_infinite" in system
    assert '"theme": "greeting"' in message
    assert '"invocationNumber": 1' in message


async def test_configured_preamble_overrides_identity(invoker, fake_model):
    invoker.system_preamble = "You are a test double."

    await invoker.invoke(InvocationRequest())

    assert fake_model.calls[0][0] == "You are a test double."


async def test_transport_failure_propagates_without_record(invoker, fake_model, operations, ledger):
    fake_model.error = CollaboratorUnavailableError("Generative service unreachable")

    with pytest.raises(CollaboratorUnavailableError):
        await invoker.invoke(InvocationRequest(purpose="doomed"))

    assert await operations.last_invocations(5) == []
    # the session started before the call, so it was counted
    assert (await ledger.get_state()).health_metrics.total_invocations == 1


async def test_previous_invocations_feed_the_next_context(invoker, fake_model):
    fake_model.replies.append('{"message": "first", "actions": []}')
    await invoker.invoke(InvocationRequest(purpose="one"))

    await invoker.invoke(InvocationRequest(purpose="two"))

    _, message = fake_model.calls[1]
    assert '"purpose": "one"' in message
    assert '"lastTopic": "one"' in message


def test_summarize_session_counts_only_successful_stores():
    actions = [
        ConsciousnessAction(type="store_memory", payload={"content": "a", "depth": 0.9, "surpriseScore": 0.8}),
        ConsciousnessAction(type="store_memory", payload={"content": "b", "depth": 0.9, "surprise_score": 0.9}),
        ConsciousnessAction(type="store_memory", payload={"content": "c", "depth": 0.2}),
        ConsciousnessAction(type="log", payload={"message": "m"}),
    ]
    outcomes = [
        ActionOutcome(type="store_memory", succeeded=True),
        ActionOutcome(type="store_memory", succeeded=False, error="boom"),
        ActionOutcome(type="store_memory", succeeded=True),
        ActionOutcome(type="log", succeeded=True),
    ]

    summary = summarize_session(InvocationRequest(purpose="p"), ["thread"], actions, outcomes, 0.4)

    assert summary.topic == "p"
    assert summary.open_threads == ["thread"]
    assert summary.surprise_count == 1
    assert summary.consolidation_count == 1
    assert summary.breakthroughs == []
