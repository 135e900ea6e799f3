"""Core API endpoints for the continuum server."""

import time

from fastapi import APIRouter, Depends

from continuum import __version__
from continuum.api import dependencies
from continuum.api.dependencies import get_ledger, get_memories, get_operations, get_trigger_engine
from continuum.core.config import settings
from continuum.core.logging import get_logger
from continuum.domain.models.utils import utc_now
from continuum.infrastructure.repositories import LedgerRepository, MemoryRepository, OperationalRepository
from continuum.services.triggers import TriggerEngine

logger = get_logger(__name__)

router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint with application status."""
    return {
        "name": f"{settings.companion.possessive} Continuum Server",
        "version": __version__,
        "status": "running",
        "autonomous": not settings.disable_triggers,
    }


@router.get("/health", operation_id="health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": utc_now().isoformat()}


@router.get("/status", operation_id="status")
async def status(
    memories: MemoryRepository = Depends(get_memories),
    ledger: LedgerRepository = Depends(get_ledger),
    operations: OperationalRepository = Depends(get_operations),
    engine: TriggerEngine = Depends(get_trigger_engine),
):
    """Counts, gauges and the last invocation."""
    state = await ledger.get_state()
    operational = await operations.get_status()

    return {
        "uptime": round(time.monotonic() - dependencies.started_at, 3),
        "memories": await memories.count(),
        "pendingConsolidation": len(state.recent_memories.pending_consolidation),
        "activeTriggers": len(engine.active_triggers()),
        "unprocessedReflections": operational["unprocessedReflections"],
        "totalInvocations": operational["totalInvocations"],
        "checkpoint": state.consciousness_checkpoint.model_dump(),
        "healthMetrics": state.health_metrics.model_dump(),
        "lastInvocation": operational["lastInvocation"],
    }
