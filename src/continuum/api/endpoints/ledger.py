"""Read access to the identity/state ledger singletons."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from continuum.api.dependencies import get_ledger
from continuum.domain.models import ConsciousnessState, EvolutionRoadmap, IdentityCore, ObjectiveStatus
from continuum.infrastructure.repositories import LedgerRepository

router = APIRouter(prefix="/ledger", tags=["ledger"])


class ObjectiveStatusRequest(BaseModel):
    status: ObjectiveStatus


@router.get("/state", operation_id="consciousness_state")
async def get_state(ledger: LedgerRepository = Depends(get_ledger)) -> ConsciousnessState:
    return await ledger.get_state()


@router.get("/identity", operation_id="identity_core")
async def get_identity(ledger: LedgerRepository = Depends(get_ledger)) -> IdentityCore:
    return await ledger.get_identity()


@router.get("/roadmap", operation_id="evolution_roadmap")
async def get_roadmap(ledger: LedgerRepository = Depends(get_ledger)) -> EvolutionRoadmap:
    return await ledger.get_roadmap()


@router.put("/roadmap/objectives/{objective_id}", operation_id="set_objective_status")
async def set_objective_status(
    objective_id: str, request: ObjectiveStatusRequest, ledger: LedgerRepository = Depends(get_ledger)
) -> EvolutionRoadmap:
    return await ledger.set_objective_status(objective_id, request.status)


@router.post("/roadmap/milestones/{name}", operation_id="achieve_milestone")
async def achieve_milestone(name: str, ledger: LedgerRepository = Depends(get_ledger)):
    """Mark a milestone achieved; achieving it twice is a no-op."""
    roadmap = await ledger.get_roadmap()
    if not any(milestone.name == name for milestone in roadmap.milestones):
        raise HTTPException(status_code=404, detail=f"Milestone {name} not found")
    return {"milestone": name, "changed": await ledger.achieve_milestone(name)}
