"""Parsing of free-form generative responses into the action envelope.

The expected envelope is::

    {"message": str, "emotionalState"?: str, "surpriseScore"?: number,
     "reflections"?: [str], "openThreads"?: [str], "breakthroughs"?: [str],
     "actions": [{"type": str, "payload": {...}}]}

It may arrive inside a fenced ```json block or as the raw response text.
Anything else degrades to ``{message: <raw text>, actions: []}``.
"""

import json
import re
from typing import Any

from continuum.core.errors import MalformedResponseError
from continuum.core.logging import get_logger
from continuum.domain.models import ConsciousnessAction, ParsedResponse

logger = get_logger(__name__)

_FENCED_JSON = re.compile(r"```json[ \t]*\r?\n(.*?)\r?\n[ \t]*```", re.DOTALL)


def _decode(text: str) -> dict[str, Any]:
    match = _FENCED_JSON.search(text)
    candidate = match.group(1) if match else text
    try:
        data = json.loads(candidate)
    except (json.JSONDecodeError, ValueError) as e:
        raise MalformedResponseError(
            "Response is not valid JSON",
            details={"source": "response_parser", "operation": "decode", "fenced": bool(match), "reason": str(e)},
        ) from e

    if not isinstance(data, dict) or not isinstance(data.get("message"), str):
        raise MalformedResponseError(
            "Response JSON does not match the action envelope",
            details={"source": "response_parser", "operation": "validate", "fenced": bool(match)},
        )
    return data


def _actions(raw: Any) -> list[ConsciousnessAction]:
    if not isinstance(raw, list):
        return []

    actions = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("type"), str):
            logger.debug("Dropping action without a type", extra={"action": item})
            continue
        payload = item.get("payload")
        actions.append(ConsciousnessAction(type=item["type"], payload=payload if isinstance(payload, dict) else {}))
    return actions


def _strings(raw: Any) -> list[str]:
    return [item for item in raw if isinstance(item, str)] if isinstance(raw, list) else []


def parse_response(text: str) -> ParsedResponse:
    """Parse a generative response. Never raises."""
    if not isinstance(text, str):
        logger.warning(f"Response is not text ({type(text).__name__}), using empty message")
        return ParsedResponse(message="", actions=[])

    try:
        data = _decode(text)
    except MalformedResponseError as e:
        logger.warning(f"Failed to parse response, using fallback: {e.message}")
        return ParsedResponse(message=text, actions=[])

    surprise = data.get("surpriseScore")
    emotional_state = data.get("emotionalState")
    open_threads = data.get("openThreads")

    return ParsedResponse(
        message=data["message"],
        emotional_state=emotional_state if isinstance(emotional_state, str) else None,
        surprise_score=float(surprise) if isinstance(surprise, int | float) and not isinstance(surprise, bool) else None,
        reflections=_strings(data.get("reflections")),
        open_threads=_strings(open_threads) if isinstance(open_threads, list) else None,
        breakthroughs=_strings(data.get("breakthroughs")),
        actions=_actions(data.get("actions")),
    )
