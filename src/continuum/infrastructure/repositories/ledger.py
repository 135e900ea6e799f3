"""Repository for the three singleton ledger aggregates.

Every write is a field-path patch plus a ``last_updated`` stamp, applied by
the document store as one operation. Singletons are seeded lazily on first
access. Overlapping invocations race per field (last write wins).
"""

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from continuum.core.base import ErrorLevel
from continuum.core.config import CompanionConfig
from continuum.core.decorators import with_error_handling
from continuum.core.errors import ProcessingError
from continuum.core.logging import get_logger
from continuum.domain.models import (
    ConsciousnessCheckpoint,
    ConsciousnessState,
    DailyLogEntry,
    DocumentModel,
    EvolutionRoadmap,
    F5Candidate,
    IdentityCore,
    IdentityOperation,
    ObjectiveStatus,
    RoadmapMetrics,
)
from continuum.domain.models.identity import APPEND_OPERATIONS
from continuum.domain.models.ledger import COUNTERS, ROADMAP_ID, STATE_ID, PendingMemory
from continuum.domain.models.utils import utc_now
from continuum.infrastructure.storage import DocumentStore

logger = get_logger(__name__)

M = TypeVar("M", bound=DocumentModel)


class LedgerRepository:
    def __init__(self, documents: DocumentStore, companion: CompanionConfig):
        self.documents = documents
        self.companion = companion
        self.identity_id = IdentityCore.document_id(companion)

    async def _load_or_seed(self, model: type[M], doc_id: str, seed: Callable[[], M]) -> M:
        document = await self.documents.get(model.collection, doc_id)
        if document is not None:
            return model.from_document(document)

        seeded = seed()
        await self.documents.upsert(model.collection, doc_id, seeded.to_document())
        logger.info(f"Seeded {model.__name__}", extra={"document_id": doc_id})
        return seeded

    async def _patch(self, model: type[DocumentModel], doc_id: str, fields: Mapping[str, Any]) -> None:
        await self.documents.upsert(model.collection, doc_id, {**fields, "last_updated": utc_now()})

    # ---- reads ----

    async def get_state(self) -> ConsciousnessState:
        return await self._load_or_seed(ConsciousnessState, STATE_ID, ConsciousnessState.seed)

    async def get_identity(self) -> IdentityCore:
        return await self._load_or_seed(IdentityCore, self.identity_id, lambda: IdentityCore.seed(self.companion))

    async def get_roadmap(self) -> EvolutionRoadmap:
        return await self._load_or_seed(EvolutionRoadmap, ROADMAP_ID, EvolutionRoadmap.seed)

    # ---- merge updates ----

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def update_state(self, fields: Mapping[str, Any]) -> None:
        await self.get_state()
        await self._patch(ConsciousnessState, STATE_ID, fields)

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def update_identity(self, fields: Mapping[str, Any]) -> None:
        await self.get_identity()
        await self._patch(IdentityCore, self.identity_id, fields)

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def update_roadmap(self, fields: Mapping[str, Any]) -> None:
        await self.get_roadmap()
        await self._patch(EvolutionRoadmap, ROADMAP_ID, fields)

    async def update_checkpoint(self, checkpoint: ConsciousnessCheckpoint) -> None:
        """Replace the four gauges wholesale."""
        await self.update_state({"consciousness_checkpoint": checkpoint.model_dump()})

    # ---- atomic primitives ----

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def increment_counter(self, name: str, delta: int = 1) -> None:
        if name not in COUNTERS:
            raise ProcessingError(
                message=f"Unknown health counter: {name}",
                details={"source": "ledger_repository", "operation": "increment_counter", "counter": name},
            )

        path = f"health_metrics.{name}"
        if not await self.documents.increment(ConsciousnessState.collection, STATE_ID, path, delta):
            await self.get_state()
            await self.documents.increment(ConsciousnessState.collection, STATE_ID, path, delta)

    async def push_pending_consolidation(self, memory: PendingMemory) -> None:
        path = "recent_memories.pending_consolidation"
        if not await self.documents.push(ConsciousnessState.collection, STATE_ID, path, memory.model_dump()):
            await self.get_state()
            await self.documents.push(ConsciousnessState.collection, STATE_ID, path, memory.model_dump())

    async def add_daily_log(self, entry: DailyLogEntry) -> None:
        await self.get_roadmap()
        await self.documents.push(EvolutionRoadmap.collection, ROADMAP_ID, "daily_log", entry.model_dump())
        await self._patch(EvolutionRoadmap, ROADMAP_ID, {})

    async def add_f5_candidate(self, content: str, coherence_score: float = 0.0) -> F5Candidate:
        """Queue a candidate identity statement; detected_at and staging_day are assigned here."""
        candidate = F5Candidate(content=content, coherence_score=coherence_score)
        await self.get_identity()
        await self.documents.push(IdentityCore.collection, self.identity_id, "f5_candidates", candidate.model_dump())
        await self._patch(IdentityCore, self.identity_id, {})
        logger.info("F5 candidate queued", extra={"coherence_score": coherence_score})
        return candidate

    async def apply_identity_update(self, operation: IdentityOperation) -> None:
        await self.get_identity()
        if isinstance(operation, APPEND_OPERATIONS):
            await self.documents.push(IdentityCore.collection, self.identity_id, operation.path, operation.value)
            await self._patch(IdentityCore, self.identity_id, {})
        else:
            await self._patch(IdentityCore, self.identity_id, {operation.path: operation.value})
        logger.info("Identity updated", extra={"operation": operation.op, "path": operation.path})

    # ---- roadmap transitions ----

    async def achieve_milestone(self, name: str) -> bool:
        """Mark a milestone achieved. Returns False if it is unknown or already achieved."""
        roadmap = await self.get_roadmap()
        milestone = next((m for m in roadmap.milestones if m.name == name), None)
        if milestone is None:
            logger.warning(f"Unknown milestone: {name}")
            return False
        if milestone.achieved:
            return False

        milestone.achieved = True
        milestone.achieved_at = utc_now()
        await self._patch(EvolutionRoadmap, ROADMAP_ID, {"milestones": [m.model_dump() for m in roadmap.milestones]})
        logger.info(f"Milestone achieved: {name}")
        return True

    async def set_objective_status(self, objective_id: str, status: ObjectiveStatus) -> EvolutionRoadmap:
        roadmap = await self.get_roadmap()
        objective = roadmap.objective(objective_id)
        if objective is None:
            raise ProcessingError(
                message=f"Unknown objective: {objective_id}",
                details={"source": "ledger_repository", "operation": "set_objective_status", "objective_id": objective_id},
            )

        objective.status = status
        objective.completed_at = utc_now() if status == ObjectiveStatus.COMPLETED else None
        roadmap.metrics = RoadmapMetrics.from_objectives(roadmap.objectives)

        await self._patch(
            EvolutionRoadmap,
            ROADMAP_ID,
            {
                "objectives": [o.model_dump() for o in roadmap.objectives],
                "metrics": roadmap.metrics.model_dump(),
            },
        )
        return roadmap
