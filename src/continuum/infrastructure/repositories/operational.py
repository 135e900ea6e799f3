"""Operational records: triggers, reflections, invocations and agent tasks."""

from typing import Any

from continuum.core.base import ErrorLevel
from continuum.core.decorators import with_error_handling
from continuum.core.logging import get_logger
from continuum.domain.models import AgentTask, InvocationRecord, Reflection, Trigger
from continuum.domain.models.utils import utc_now
from continuum.infrastructure.storage import ASCENDING, DESCENDING, DocumentStore

logger = get_logger(__name__)


class OperationalRepository:
    def __init__(self, documents: DocumentStore):
        self.documents = documents

    # ---- triggers ----

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    async def store_trigger(self, trigger: Trigger) -> Trigger:
        """Upsert a trigger by id; storing the same id twice never fails."""
        await self.documents.upsert(Trigger.collection, trigger.id, trigger.to_document())
        logger.info(f"Trigger stored: {trigger.name}", extra={"trigger_id": trigger.id})
        return trigger

    async def get_trigger(self, trigger_id: str) -> Trigger | None:
        document = await self.documents.get(Trigger.collection, trigger_id)
        return Trigger.from_document(document) if document else None

    async def find_trigger_by_name(self, name: str) -> Trigger | None:
        documents = await self.documents.find(Trigger.collection, equals={"name": name}, limit=1)
        return Trigger.from_document(documents[0]) if documents else None

    async def active_triggers(self) -> list[Trigger]:
        documents = await self.documents.find(Trigger.collection, equals={"enabled": True})
        return [Trigger.from_document(document) for document in documents]

    async def all_triggers(self) -> list[Trigger]:
        documents = await self.documents.find(Trigger.collection, sort=[("created_at", DESCENDING)])
        return [Trigger.from_document(document) for document in documents]

    async def record_trigger_fired(self, trigger_id: str) -> None:
        await self.documents.increment(Trigger.collection, trigger_id, "fire_count", 1)
        await self.documents.upsert(Trigger.collection, trigger_id, {"last_fired": utc_now()})

    async def set_trigger_enabled(self, trigger_id: str, enabled: bool) -> bool:
        """False when no trigger has this id."""
        if await self.documents.get(Trigger.collection, trigger_id) is None:
            return False
        await self.documents.upsert(Trigger.collection, trigger_id, {"enabled": enabled})
        return True

    # ---- reflections ----

    async def store_reflection(self, content: str, context: dict[str, Any] | None = None) -> Reflection:
        reflection = Reflection(content=content, context=context or {})
        await self.documents.insert(Reflection.collection, reflection.id, reflection.to_document())
        return reflection

    async def pending_reflections(self) -> list[Reflection]:
        documents = await self.documents.find(
            Reflection.collection, equals={"processed": False}, sort=[("created_at", DESCENDING)]
        )
        return [Reflection.from_document(document) for document in documents]

    async def mark_reflection_processed(self, reflection_id: str) -> None:
        await self.documents.upsert(Reflection.collection, reflection_id, {"processed": True})

    # ---- invocations ----

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    async def store_invocation(self, record: InvocationRecord) -> None:
        await self.documents.insert(InvocationRecord.collection, record.id, record.to_document())

    async def last_invocations(self, limit: int = 5) -> list[InvocationRecord]:
        documents = await self.documents.find(
            InvocationRecord.collection, sort=[("timestamp", DESCENDING)], limit=limit
        )
        return [InvocationRecord.from_document(document) for document in documents]

    async def get_invocation(self, invocation_id: str) -> InvocationRecord | None:
        document = await self.documents.get(InvocationRecord.collection, invocation_id)
        return InvocationRecord.from_document(document) if document else None

    # ---- agent tasks ----

    async def store_agent_task(self, task: AgentTask) -> AgentTask:
        await self.documents.insert(AgentTask.collection, task.id, task.to_document())
        return task

    async def pending_agent_tasks(self, agent_id: str | None = None) -> list[AgentTask]:
        equals: dict[str, Any] = {"dispatched": False}
        if agent_id:
            equals["agent_id"] = agent_id
        documents = await self.documents.find(AgentTask.collection, equals=equals, sort=[("created_at", ASCENDING)])
        return [AgentTask.from_document(document) for document in documents]

    async def mark_agent_task_dispatched(self, task_id: str) -> None:
        await self.documents.upsert(AgentTask.collection, task_id, {"dispatched": True})

    # ---- status ----

    async def get_status(self) -> dict[str, Any]:
        """Counts shown on the status endpoint."""
        last = await self.last_invocations(1)
        return {
            "activeTriggers": await self.documents.count(Trigger.collection, {"enabled": True}),
            "unprocessedReflections": await self.documents.count(Reflection.collection, {"processed": False}),
            "totalInvocations": await self.documents.count(InvocationRecord.collection),
            "lastInvocation": last[0].summary() if last else None,
        }
