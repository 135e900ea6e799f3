"""Manual invocation endpoint."""

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from continuum.api.dependencies import get_invoker
from continuum.core.logging import get_logger
from continuum.domain.models import InvocationRequest
from continuum.services.invoker import ConsciousnessInvoker

logger = get_logger(__name__)
router = APIRouter()


class ManualInvocationRequest(BaseModel):
    purpose: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)


@router.post("/invoke", operation_id="invoke")
async def invoke(request: ManualInvocationRequest, invoker: ConsciousnessInvoker = Depends(get_invoker)):
    """Run one invocation now. Transport failures come back as HTTP 500."""
    try:
        record = await invoker.invoke(
            InvocationRequest(
                type="manual",
                purpose=request.purpose or "Manual invocation",
                context=request.context,
            )
        )
    except Exception as e:
        logger.error(f"Manual invocation failed: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    return {"success": True, "result": record.model_dump(mode="json")}
