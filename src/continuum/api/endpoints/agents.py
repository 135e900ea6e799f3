"""Agent registry endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from continuum.api.dependencies import get_agent_orchestrator
from continuum.domain.models import Agent
from continuum.services.agents import AgentOrchestrator

router = APIRouter(prefix="/agents", tags=["agents"])


class DispatchRequest(BaseModel):
    task: str
    context: dict[str, Any] = Field(default_factory=dict)


@router.get("", operation_id="list_agents")
async def list_agents(orchestrator: AgentOrchestrator = Depends(get_agent_orchestrator)) -> list[Agent]:
    return orchestrator.list_agents()


@router.post("/{agent_id}/dispatch", operation_id="dispatch_agent")
async def dispatch(
    agent_id: str, request: DispatchRequest, orchestrator: AgentOrchestrator = Depends(get_agent_orchestrator)
):
    """Run a task for one agent through the invoker."""
    if orchestrator.get_agent(agent_id) is None:
        raise HTTPException(status_code=404, detail=f"Agent {agent_id} not found")
    record = await orchestrator.dispatch(agent_id, request.task, request.context)
    return {"success": True, "result": record.model_dump(mode="json")}
