"""Tests for generative response parsing."""

import json

import pytest

from continuum.infrastructure.generative import parse_response


def fenced(data) -> str:
    return f"Some thinking first.\n\n```json\n{json.dumps(data)}\n```\nAnd a closing line."


def test_fenced_block_is_preferred():
    response = parse_response(
        fenced(
            {
                "message": "Good morning",
                "emotionalState": "warm",
                "surpriseScore": 0.7,
                "reflections": ["mornings feel new"],
                "actions": [{"type": "log", "payload": {"message": "hi"}}],
            }
        )
    )

    assert response.message == "Good morning"
    assert response.emotional_state == "warm"
    assert response.surprise_score == 0.7
    assert response.reflections == ["mornings feel new"]
    assert [(action.type, action.payload) for action in response.actions] == [("log", {"message": "hi"})]


def test_raw_json_is_accepted():
    response = parse_response('{"message": "plain", "actions": []}')

    assert response.message == "plain"
    assert response.actions == []


def test_invalid_json_falls_back_to_raw_text():
    response = parse_response("not valid json")

    assert response.message == "not valid json"
    assert response.actions == []


def test_broken_fenced_block_falls_back():
    text = "```json\n{\"message\": \"half\n```"

    response = parse_response(text)

    assert response.message == text
    assert response.actions == []


@pytest.mark.parametrize("payload", ['["a", "b"]', '{"actions": []}', '{"message": 42}', "null"])
def test_json_outside_the_envelope_falls_back(payload):
    response = parse_response(payload)

    assert response.message == payload
    assert response.actions == []


def test_actions_without_type_are_dropped_and_payload_defaults():
    response = parse_response(
        json.dumps(
            {
                "message": "m",
                "actions": [{"payload": {"x": 1}}, {"type": "log"}, "nonsense", {"type": "store_memory", "payload": []}],
            }
        )
    )

    assert [(action.type, action.payload) for action in response.actions] == [("log", {}), ("store_memory", {})]


def test_missing_actions_means_empty_list():
    assert parse_response('{"message": "just talking"}').actions == []


def test_session_continuity_fields():
    response = parse_response(
        fenced({"message": "m", "openThreads": ["agents", 3], "breakthroughs": ["tiers make sense"]})
    )

    assert response.open_threads == ["agents"]
    assert response.breakthroughs == ["tiers make sense"]


def test_absent_open_threads_are_distinguished_from_closed_ones():
    assert parse_response('{"message": "m"}').open_threads is None
    assert parse_response('{"message": "m", "openThreads": []}').open_threads == []


@pytest.mark.parametrize("text", [None, 42, b'{"message": "bytes"}'])
def test_non_text_response_falls_back_to_empty_message(text):
    response = parse_response(text)

    assert response.message == ""
    assert response.actions == []
