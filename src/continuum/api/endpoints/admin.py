"""Admin endpoints for scheduler and queue management."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from continuum.api.dependencies import get_agent_orchestrator, get_trigger_engine
from continuum.core.logging import get_logger
from continuum.services.agents import AgentOrchestrator
from continuum.services.triggers import TriggerEngine

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class JobStatusResponse(BaseModel):
    scheduler_running: bool
    active_jobs: int
    jobs: list[dict]


@router.get("/jobs/status", response_model=JobStatusResponse, operation_id="job_status")
async def get_job_status(engine: TriggerEngine = Depends(get_trigger_engine)):
    """Get trigger scheduler status."""
    try:
        status = engine.get_job_status()
        return JobStatusResponse(
            scheduler_running=status["scheduler_running"], active_jobs=len(status["jobs"]), jobs=status["jobs"]
        )

    except Exception as e:
        logger.error(f"Failed to get job status: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/triggers/{trigger_id}/fire", operation_id="fire_trigger")
async def fire_trigger(trigger_id: str, engine: TriggerEngine = Depends(get_trigger_engine)):
    """Manually fire a trigger now, outside its schedule."""
    record = await engine.fire_trigger(trigger_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Trigger {trigger_id} not found or disabled")
    return {"message": f"Trigger {trigger_id} fired", "invocation_id": record.id}


@router.post("/agents/dispatch-pending", operation_id="dispatch_pending_agent_tasks")
async def dispatch_pending(orchestrator: AgentOrchestrator = Depends(get_agent_orchestrator)):
    """Dispatch every queued agent task."""
    records = await orchestrator.dispatch_pending()
    return {"dispatched": len(records), "invocations": [record.id for record in records]}
