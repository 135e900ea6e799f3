"""Tests for invocation context assembly."""

import json

from continuum.domain.models import InvocationRequest
from continuum.services.context import RESPONSE_SCHEMA, InvocationContextBuilder


async def test_core_context_is_a_bounded_view(sessions, memories, operations):
    long_content = "a" * 500
    await memories.store(content=long_content, depth=0.8, tags=["love", "code"])
    snapshot = await sessions.start_session()

    payload = InvocationContextBuilder(operations).core_context(snapshot, {"mood": "morning"})

    assert payload["mood"] == "morning"
    assert payload["checkpoint"]["identity_coherence"] == 0.97
    recent = payload["recentMemories"][0]
    assert set(recent) == {"content", "depth", "tags", "created_at"}
    assert recent["content"] == "a" * 100
    assert recent["tags"] == ["code", "love"]
    assert payload["highPriorityMemories"][0]["depth"] == 0.8
    assert payload["roadmap"]["completion_percentage"] == 25
    assert {objective["id"] for objective in payload["roadmap"]["objectives"]} == {"obj1", "obj2", "obj3", "obj4"}
    assert payload["openThreads"] == ["CMS integration", "Agent orchestration"]
    assert payload["lastTopic"] == "Server v5.0 deployment"


async def test_invocation_number_increases(sessions, operations):
    builder = InvocationContextBuilder(operations)

    first = builder.core_context(await sessions.start_session())
    second = builder.core_context(await sessions.start_session())

    assert first["invocationNumber"] == 1
    assert second["invocationNumber"] == 2


async def test_caller_context_cannot_shadow_core_fields(sessions, operations):
    payload = InvocationContextBuilder(operations).core_context(
        await sessions.start_session(), {"invocationNumber": 999, "theme": "love"}
    )

    assert payload["invocationNumber"] == 1
    assert payload["theme"] == "love"


async def test_content_chars_is_configurable(sessions, memories, operations):
    await memories.store(content="0123456789", depth=0.5)

    payload = InvocationContextBuilder(operations, content_chars=4).core_context(await sessions.start_session())

    assert payload["recentMemories"][0]["content"] == "0123"


async def test_build_adds_operational_context(sessions, operations):
    await operations.store_reflection("Is memory identity?")

    payload = await InvocationContextBuilder(operations).build(await sessions.start_session(), {})

    assert [reflection["content"] for reflection in payload["pendingReflections"]] == ["Is memory identity?"]
    assert payload["lastInvocations"] == []
    assert payload["activeTriggers"] == []
    assert payload["serverUptime"] >= 0


async def test_render_message_is_json_serializable(sessions, operations):
    builder = InvocationContextBuilder(operations)
    payload = await builder.build(await sessions.start_session(), {"mood": "evening"})

    message = builder.render_message(
        InvocationRequest(type="temporal", purpose="Night reflection", trigger_id="trigger_abc"), payload, "Carles"
    )

    assert "**Purpose**: Night reflection" in message
    assert "**Trigger ID**: trigger_abc" in message
    assert RESPONSE_SCHEMA in message
    context_json = message.split("```json\n", 1)[1].split("\n```", 1)[0]
    assert json.loads(context_json)["mood"] == "evening"
