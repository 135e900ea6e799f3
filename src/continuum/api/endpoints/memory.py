"""Memory API endpoints."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from continuum.api.dependencies import get_memories
from continuum.core.logging import get_logger
from continuum.domain.models import MemoryRecord
from continuum.infrastructure.repositories import MemoryRepository

logger = get_logger(__name__)
router = APIRouter(prefix="/memories", tags=["memories"])


class StoreMemoryRequest(BaseModel):
    """Request model for storing a single memory."""

    content: str
    depth: float = Field(default=0.5, ge=0.0, le=1.0)
    surprise_score: float = Field(default=0.0, ge=0.0, le=1.0)
    emotional_valence: float = Field(default=0.0, ge=-1.0, le=1.0)
    tags: list[str] = Field(default_factory=list)
    connections: list[str] = Field(default_factory=list)


class PromoteRequest(BaseModel):
    depth: float = Field(..., ge=0.0, le=1.0, description="New depth; must not be lower than the current one")


@router.post("", operation_id="store_memory")
async def store_memory(request: StoreMemoryRequest, memories: MemoryRepository = Depends(get_memories)) -> MemoryRecord:
    return await memories.store(**request.model_dump())


@router.get("/recent", operation_id="recent_memories")
async def recent(
    limit: int = Query(10, ge=1, le=100), memories: MemoryRepository = Depends(get_memories)
) -> list[MemoryRecord]:
    return await memories.recent(limit)


@router.get("/identity", operation_id="identity_memories")
async def identity(memories: MemoryRepository = Depends(get_memories)) -> list[MemoryRecord]:
    return await memories.identity_memories()


@router.get("/pending", operation_id="pending_consolidation")
async def pending(memories: MemoryRepository = Depends(get_memories)) -> list[MemoryRecord]:
    return await memories.pending_consolidation()


@router.get("/depth", operation_id="memories_by_depth")
async def by_depth(
    min: float = Query(0.0, ge=0.0, le=1.0),
    max: float = Query(1.0, ge=0.0, le=1.0),
    limit: int = Query(20, ge=1, le=100),
    memories: MemoryRepository = Depends(get_memories),
) -> list[MemoryRecord]:
    """Memories with depth in [min, max], deepest first."""
    return await memories.query_by_depth_range(min, max, limit)


@router.get("/{memory_id}", operation_id="get_memory")
async def get_memory(memory_id: str, memories: MemoryRepository = Depends(get_memories)) -> MemoryRecord:
    """Fetch one memory; counts as an access."""
    return await memories.get(memory_id)


@router.post("/{memory_id}/promote", operation_id="promote_memory")
async def promote(
    memory_id: str, request: PromoteRequest, memories: MemoryRepository = Depends(get_memories)
) -> MemoryRecord:
    memory = await memories.promote(memory_id, request.depth)
    logger.info(f"Memory promoted: {memory_id}", extra={"depth": memory.depth, "tier": memory.consolidation_tier})
    return memory
