"""Trigger management endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from continuum.api.dependencies import get_trigger_engine
from continuum.core.logging import get_logger
from continuum.domain.models import Trigger, TriggerType
from continuum.services.triggers import TriggerEngine

logger = get_logger(__name__)
router = APIRouter(prefix="/triggers", tags=["triggers"])


class CreateTriggerRequest(BaseModel):
    name: str
    type: TriggerType = TriggerType.TEMPORAL
    schedule: str | None = None
    condition: str | None = None
    event: str | None = None
    purpose: str = ""
    context: dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True


@router.get("", operation_id="list_triggers")
async def list_triggers(engine: TriggerEngine = Depends(get_trigger_engine)) -> list[Trigger]:
    return engine.active_triggers()


@router.post("", operation_id="create_trigger")
async def create_trigger(request: CreateTriggerRequest, engine: TriggerEngine = Depends(get_trigger_engine)):
    trigger = await engine.add_trigger(Trigger(**request.model_dump()))
    return {"success": True, "message": "Trigger added", "id": trigger.id}


@router.post("/events/{event}", operation_id="fire_event")
async def fire_event(event: str, data: dict[str, Any] | None = None, engine: TriggerEngine = Depends(get_trigger_engine)):
    """Fire every event trigger listening for ``event``."""
    records = await engine.fire_event(event, data)
    return {"fired": len(records), "invocations": [record.id for record in records]}


@router.delete("/{trigger_id}", operation_id="disable_trigger")
async def disable_trigger(trigger_id: str, engine: TriggerEngine = Depends(get_trigger_engine)):
    if not await engine.disable_trigger(trigger_id):
        raise HTTPException(status_code=404, detail=f"Trigger {trigger_id} not found")
    return {"success": True, "message": f"Trigger {trigger_id} disabled"}
