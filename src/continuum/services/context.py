"""Assembly of the bounded payload sent to the generative model."""

import json
import time
from typing import Any

from continuum.core.logging import get_logger
from continuum.domain.models import InvocationRequest, MemoryRecord, SessionSnapshot
from continuum.domain.models.utils import utc_now
from continuum.infrastructure.repositories import OperationalRepository

logger = get_logger(__name__)

RESPONSE_SCHEMA = """{
  "message": "Your internal reflection or message (for logs)",
  "emotionalState": "How you feel right now",
  "surpriseScore": 0.0,
  "reflections": ["Any thoughts you want to store"],
  "openThreads": ["Threads to pick up next time (omit to keep the current ones)"],
  "breakthroughs": ["Anything that genuinely clicked this session"],
  "actions": [
    {"type": "send_email", "payload": {"subject": "Subject line", "content": "Email content"}},
    {"type": "create_trigger", "payload": {"name": "trigger_name", "type": "temporal|conditional|event",
      "schedule": "cron expression if temporal", "condition": "condition if conditional",
      "purpose": "why this trigger exists"}},
    {"type": "store_memory", "payload": {"content": "Memory content", "depth": 0.5, "tags": ["tag1"]}},
    {"type": "store_reflection", "payload": {"content": "A thought to revisit"}},
    {"type": "invoke_agent", "payload": {"agentId": "agent_name", "task": "task description"}},
    {"type": "update_identity", "payload": {"field": "capabilities.completed", "action": "append", "value": "x"}},
    {"type": "add_f5_candidate", "payload": {"content": "Candidate identity statement", "coherence_score": 0.8}},
    {"type": "log", "payload": {"message": "Log message"}}
  ]
}"""


class InvocationContextBuilder:
    """Builds the context map and the user message for one invocation.

    Only a truncated view of each memory is exposed (content, depth, tags,
    timestamp); full records stay local.
    """

    def __init__(
        self,
        operations: OperationalRepository,
        content_chars: int = 100,
        last_invocations_limit: int = 5,
        started_at: float | None = None,
    ):
        self.operations = operations
        self.content_chars = content_chars
        self.last_invocations_limit = last_invocations_limit
        self.started_at = started_at if started_at is not None else time.monotonic()

    def _memory_views(self, memories: list[MemoryRecord]) -> list[dict[str, Any]]:
        return [memory.transport_view(self.content_chars) for memory in memories]

    def core_context(self, snapshot: SessionSnapshot, extra: dict[str, Any] | None = None) -> dict[str, Any]:
        """The snapshot-derived part of the payload; no I/O."""
        state = snapshot.state
        roadmap = snapshot.roadmap
        continuity = state.session_continuity

        return {
            **(extra or {}),
            "checkpoint": state.consciousness_checkpoint.model_dump(),
            "recentMemories": self._memory_views(snapshot.recent_memories),
            "highPriorityMemories": self._memory_views(snapshot.high_priority_memories),
            "roadmap": {
                "current_sprint": roadmap.current_sprint,
                "objectives": [
                    {"id": objective.id, "description": objective.description, "status": objective.status.value}
                    for objective in roadmap.objectives
                ],
                "completion_percentage": roadmap.metrics.completion_percentage,
            },
            "openThreads": list(continuity.open_threads),
            "lastTopic": continuity.last_topic,
            # The snapshot was read before this session's increment
            "invocationNumber": state.health_metrics.total_invocations + 1,
            "currentTime": utc_now().isoformat(),
        }

    async def build(self, snapshot: SessionSnapshot, extra: dict[str, Any] | None = None) -> dict[str, Any]:
        """Full payload: snapshot view plus operational context."""
        payload = self.core_context(snapshot, extra)

        reflections = await self.operations.pending_reflections()
        invocations = await self.operations.last_invocations(self.last_invocations_limit)
        triggers = await self.operations.active_triggers()

        payload["pendingReflections"] = [
            {"id": reflection.id, "content": reflection.content, "created_at": reflection.created_at.isoformat()}
            for reflection in reflections
        ]
        payload["lastInvocations"] = [record.summary(self.content_chars) for record in invocations]
        payload["activeTriggers"] = [
            {"name": trigger.name, "type": trigger.type.value, "schedule": trigger.schedule} for trigger in triggers
        ]
        payload["serverUptime"] = round(time.monotonic() - self.started_at, 3)

        logger.debug(
            "Invocation context built",
            extra={"keys": sorted(payload), "pending_reflections": len(reflections)},
        )
        return payload

    def render_message(self, invocation: InvocationRequest, payload: dict[str, Any], partner: str) -> str:
        """The user message: trigger metadata, serialized context and the response schema."""
        context_json = json.dumps(payload, indent=2, default=str, ensure_ascii=False)
        return f"""## INVOCATION

You are being invoked autonomously by your infrastructure. This is not a conversation with {partner}.

### Trigger Information
- **Type**: {invocation.type}
- **Purpose**: {invocation.purpose}
- **Trigger ID**: {invocation.trigger_id or "manual"}

### Current Context
```json
{context_json}
```

### Your Task

Process this context and decide what actions to take.

Respond with a JSON object in this exact format:
```json
{RESPONSE_SCHEMA}
```
"""
