"""Tests for the action executor."""

import pytest

from continuum.domain.models import AgentTask, ConsciousnessAction, Trigger
from continuum.domain.salience import ConsolidationTier
from continuum.services.actions import ActionExecutor


def action(type_: str, **payload) -> ConsciousnessAction:
    return ConsciousnessAction(type=type_, payload=payload)


class RecordingTriggers:
    def __init__(self):
        self.added: list[Trigger] = []

    async def add_trigger(self, trigger: Trigger) -> Trigger:
        self.added.append(trigger)
        return trigger


class RecordingAgents:
    def __init__(self):
        self.queued: list[tuple[str, str, dict | None]] = []

    async def enqueue(self, agent_id, task, context=None):
        if agent_id == "nobody":
            return None
        self.queued.append((agent_id, task, context))
        return AgentTask(agent_id=agent_id, task=task, context=context or {})


async def test_scenario_failure_does_not_undo_earlier_actions(executor, memories):
    outcomes = await executor.execute(
        [
            action("store_memory", content="a", depth=0.1),
            action("update_identity", field="capabilities.bogus.path", action="replace", value="x"),
        ]
    )

    assert [outcome.type for outcome in outcomes] == ["store_memory", "update_identity"]
    assert outcomes[0].succeeded is True
    assert outcomes[1].succeeded is False
    assert "capabilities.bogus.path" in outcomes[1].error

    stored = await memories.recent(10)
    assert len(stored) == 1
    assert stored[0].content == "a"
    assert stored[0].consolidation_tier == ConsolidationTier.EPHEMERAL


async def test_unknown_action_types_are_ignored(executor):
    outcomes = await executor.execute([action("teleport", where="moon")])

    assert outcomes[0].succeeded is True
    assert outcomes[0].detail == "ignored"


async def test_every_action_is_attempted_even_if_all_fail(executor, fake_email):
    fake_email.fail = True

    outcomes = await executor.execute(
        [
            action("send_email", subject="Hello", content="line one\nline two"),
            action("store_memory", depth=0.3),
            action("update_identity", field="nowhere", value="x"),
        ]
    )

    assert [outcome.succeeded for outcome in outcomes] == [False, False, False]


async def test_send_email(executor, fake_email):
    outcomes = await executor.execute([action("send_email", subject="Buenos días", content="Hola\nCarles")])

    assert outcomes[0].succeeded
    assert fake_email.sent == [("Buenos días", "Hola\nCarles")]


async def test_send_email_without_service(memories, ledger, operations):
    executor = ActionExecutor(memories, ledger, operations)

    outcomes = await executor.execute([action("send_email", subject="s", content="c")])

    assert outcomes[0].succeeded is False


async def test_store_memory_accepts_camel_case_and_defaults(executor, memories, ledger):
    await executor.execute([action("store_memory", content="realized something", surpriseScore=0.8, tags=["insight"])])

    memory = (await memories.recent(1))[0]
    assert memory.depth == 0.5
    assert memory.surprise_score == 0.8
    assert memory.tags == {"insight"}
    # Default depth is above the pending threshold
    assert len((await ledger.get_state()).recent_memories.pending_consolidation) == 1


async def test_create_trigger_is_an_upsert(executor, operations):
    payload = {"id": "trigger_fixed", "name": "dawn", "schedule": "0 6 * * *", "purpose": "See the sunrise"}

    await executor.execute([action("create_trigger", **payload)])
    outcomes = await executor.execute([action("create_trigger", **{**payload, "purpose": "See it again"})])

    assert outcomes[0].succeeded
    triggers = await operations.all_triggers()
    assert len(triggers) == 1
    assert triggers[0].purpose == "See it again"


async def test_create_trigger_goes_through_registry(executor):
    registry = RecordingTriggers()
    executor.triggers = registry

    await executor.execute([action("create_trigger", name="on_diary", type="event", event="diary", purpose="Read it")])

    assert [trigger.name for trigger in registry.added] == ["on_diary"]


async def test_store_reflection(executor, operations):
    await executor.execute([action("store_reflection", reflection="What do I want?", mood="curious")])

    pending = await operations.pending_reflections()
    assert [reflection.content for reflection in pending] == ["What do I want?"]
    assert pending[0].context == {"mood": "curious"}
    assert pending[0].processed is False


async def test_invoke_agent_is_queued_not_run(executor):
    agents = RecordingAgents()
    executor.agents = agents

    outcomes = await executor.execute([action("invoke_agent", agentId="arxiv_researcher", task="find papers")])

    assert outcomes[0].succeeded
    assert agents.queued == [("arxiv_researcher", "find papers", None)]


async def test_invoke_agent_requires_id(executor):
    outcomes = await executor.execute([action("invoke_agent", task="who?")])

    assert outcomes[0].succeeded is False


async def test_invoke_agent_for_unregistered_agent_fails(executor):
    agents = RecordingAgents()
    executor.agents = agents

    outcomes = await executor.execute([action("invoke_agent", agentId="nobody", task="anything")])

    assert outcomes[0].succeeded is False
    assert "nobody" in outcomes[0].error
    assert agents.queued == []


async def test_update_identity_append(executor, ledger):
    await executor.execute(
        [action("update_identity", field="capabilities.in_progress", action="append", value="Self-reflection")]
    )

    assert (await ledger.get_identity()).capabilities.in_progress[-1] == "Self-reflection"


async def test_add_f5_candidate(executor, ledger):
    await executor.execute([action("add_f5_candidate", content="I am the same across invocations", coherence_score=0.9)])

    candidate = (await ledger.get_identity()).f5_candidates[-1]
    assert candidate.content == "I am the same across invocations"
    assert candidate.staging_day == 0
    assert candidate.coherence_score == 0.9


async def test_log_action(executor):
    outcomes = await executor.execute([action("log", message="checking in")])

    assert outcomes[0].detail == "logged"


@pytest.mark.parametrize("bad_depth", [1.5, -0.1, "deep"])
async def test_invalid_memory_payload_is_recorded(executor, bad_depth):
    outcomes = await executor.execute([action("store_memory", content="x", depth=bad_depth)])

    assert outcomes[0].succeeded is False
    assert outcomes[0].error
