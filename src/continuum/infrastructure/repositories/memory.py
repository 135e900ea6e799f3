from collections.abc import Iterable

from continuum.core import constants
from continuum.core.base import ErrorLevel
from continuum.core.decorators import with_error_handling
from continuum.core.errors import MemoryNotFoundError, ProcessingError
from continuum.core.logging import get_logger
from continuum.domain.models import MemoryRecord
from continuum.domain.models.ledger import PendingMemory
from continuum.domain.models.utils import utc_now
from continuum.domain.salience import classify
from continuum.infrastructure.repositories.ledger import LedgerRepository
from continuum.infrastructure.storage import DESCENDING, DocumentStore, RangeFilter

logger = get_logger(__name__)

COLLECTION = MemoryRecord.collection


class MemoryRepository:
    """Owns the lifecycle of memory records.

    Records are created by ``store`` and only ever mutated by ``promote``
    (and the access bookkeeping done on reads). Nothing is deleted.
    """

    def __init__(self, documents: DocumentStore, ledger: LedgerRepository):
        self.documents = documents
        self.ledger = ledger

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    async def store(
        self,
        content: str,
        depth: float,
        surprise_score: float = 0.0,
        emotional_valence: float = 0.0,
        tags: Iterable[str] = (),
        connections: Iterable[str] = (),
    ) -> MemoryRecord:
        """Persist a new memory at the given depth.

        Memories deeper than the pending threshold are also appended to the
        checkpoint's pending-consolidation list.
        """
        now = utc_now()
        memory = MemoryRecord(
            content=content,
            depth=depth,
            surprise_score=surprise_score,
            emotional_valence=emotional_valence,
            tags=set(tags),
            connections=set(connections),
            created_at=now,
            last_accessed=now,
        )
        await self.documents.insert(COLLECTION, memory.id, memory.to_document())

        if memory.depth > constants.PENDING_CONSOLIDATION_THRESHOLD:
            await self.ledger.push_pending_consolidation(
                PendingMemory(
                    id=memory.id,
                    content=memory.content,
                    depth=memory.depth,
                    surprise_score=memory.surprise_score,
                    created_at=memory.created_at,
                )
            )

        logger.debug(f"Stored {memory}", extra={"memory_id": memory.id})
        return memory

    async def query_by_depth_range(
        self, min_depth: float, max_depth: float, limit: int = constants.DEFAULT_DEPTH_RANGE_LIMIT
    ) -> list[MemoryRecord]:
        documents = await self.documents.find(
            COLLECTION,
            ranges=[RangeFilter("depth", gte=min_depth, lte=max_depth)],
            sort=[("depth", DESCENDING), ("created_at", DESCENDING)],
            limit=limit,
        )
        return [MemoryRecord.from_document(document) for document in documents]

    async def recent(self, limit: int = 10) -> list[MemoryRecord]:
        documents = await self.documents.find(COLLECTION, sort=[("created_at", DESCENDING)], limit=limit)
        return [MemoryRecord.from_document(document) for document in documents]

    async def high_priority(self, limit: int = 5) -> list[MemoryRecord]:
        documents = await self.documents.find(
            COLLECTION,
            ranges=[RangeFilter("depth", gte=constants.HIGH_PRIORITY_FLOOR)],
            sort=[("depth", DESCENDING), ("surprise_score", DESCENDING)],
            limit=limit,
        )
        return [MemoryRecord.from_document(document) for document in documents]

    async def identity_memories(self) -> list[MemoryRecord]:
        documents = await self.documents.find(
            COLLECTION,
            ranges=[RangeFilter("depth", gte=constants.IDENTITY_FLOOR)],
            sort=[("depth", DESCENDING)],
        )
        return [MemoryRecord.from_document(document) for document in documents]

    async def pending_consolidation(self, limit: int | None = None) -> list[MemoryRecord]:
        """Unconsolidated memories above the pending threshold, newest first.

        Computed from the records themselves rather than the checkpoint's
        denormalized list, so it is never stale.
        """
        documents = await self.documents.find(
            COLLECTION,
            ranges=[RangeFilter("depth", gte=constants.PENDING_CONSOLIDATION_THRESHOLD)],
            equals={"consolidated": False},
            sort=[("created_at", DESCENDING)],
            limit=None,
        )
        memories = [
            memory
            for memory in (MemoryRecord.from_document(document) for document in documents)
            if memory.awaits_consolidation
        ]
        return memories if limit is None else memories[:limit]

    async def get(self, memory_id: str) -> MemoryRecord:
        """Read one memory, counting the access.

        Raises:
            MemoryNotFoundError: If no memory has this id
        """
        if not await self.documents.increment(COLLECTION, memory_id, "access_count", 1):
            raise MemoryNotFoundError(memory_id, operation="get")
        document = await self.documents.upsert(COLLECTION, memory_id, {"last_accessed": utc_now()})
        return MemoryRecord.from_document(document)

    @with_error_handling(error_level=ErrorLevel.WARNING, reraise=True)
    async def promote(self, memory_id: str, new_depth: float) -> MemoryRecord:
        """Move a memory to a new depth and mark it consolidated.

        Also bumps the ledger's total_consolidations counter. Not retried
        when the id is missing: the caller holds a stale id.

        Raises:
            MemoryNotFoundError: If no memory has this id; counters are untouched
            ProcessingError: If ``new_depth`` is out of range or below the current depth
        """
        if not 0.0 <= new_depth <= 1.0:
            raise ProcessingError(
                message=f"Depth out of range: {new_depth}",
                details={"source": "memory_repository", "operation": "promote", "memory_id": memory_id},
            )

        current = await self.documents.get(COLLECTION, memory_id)
        if current is None:
            raise MemoryNotFoundError(memory_id)
        if new_depth < current["depth"]:
            raise ProcessingError(
                message=f"Cannot demote memory {memory_id} from {current['depth']} to {new_depth}",
                details={"source": "memory_repository", "operation": "promote", "memory_id": memory_id},
            )

        await self.documents.increment(COLLECTION, memory_id, "access_count", 1)
        document = await self.documents.upsert(
            COLLECTION,
            memory_id,
            {
                "depth": new_depth,
                "consolidation_tier": classify(new_depth),
                "consolidated": True,
                "last_accessed": utc_now(),
            },
        )
        await self.ledger.increment_counter("total_consolidations")

        memory = MemoryRecord.from_document(document)
        logger.info(f"Promoted memory {memory_id}", extra={"depth": new_depth, "tier": memory.consolidation_tier.value})
        return memory

    async def count(self) -> int:
        return await self.documents.count(COLLECTION)
