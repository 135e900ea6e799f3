"""Models exchanged with the generative model and the records an invocation leaves behind."""

from datetime import datetime
from typing import Any, ClassVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from continuum.domain.models.base import DocumentModel
from continuum.domain.models.utils import epoch_millis, random_base36, utc_now


class InvocationRequest(BaseModel):
    """Trigger metadata describing why an invocation is happening."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = "manual"
    purpose: str = "Manual invocation"
    context: dict[str, Any] = Field(default_factory=dict)
    trigger_id: str | None = Field(default=None, alias="triggerId")


class ConsciousnessAction(BaseModel):
    """One side effect requested by the generative model."""

    type: str
    payload: dict[str, Any] = Field(default_factory=dict)


class ParsedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    emotional_state: str | None = Field(default=None, alias="emotionalState")
    surprise_score: float | None = Field(default=None, alias="surpriseScore")
    reflections: list[str] = Field(default_factory=list)
    # None when the response does not mention them; the previous threads carry forward
    open_threads: list[str] | None = Field(default=None, alias="openThreads")
    breakthroughs: list[str] = Field(default_factory=list)
    actions: list[ConsciousnessAction] = Field(default_factory=list)


class ActionOutcome(BaseModel):
    """Result of applying one action; failures are recorded, not raised."""

    type: str
    succeeded: bool
    detail: str | None = None
    error: str | None = None


class InvocationRecord(DocumentModel):
    collection: ClassVar[str] = "invocations"

    id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=utc_now)
    context: InvocationRequest
    response: str
    actions: list[ConsciousnessAction] = Field(default_factory=list)
    outcomes: list[ActionOutcome] = Field(default_factory=list)
    emotional_state: str | None = None
    reflections: list[str] = Field(default_factory=list)
    surprise_score: float | None = None

    def summary(self, max_chars: int = 200) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "type": self.context.type,
            "purpose": self.context.purpose,
            "response": self.response[:max_chars],
        }


class Reflection(DocumentModel):
    collection: ClassVar[str] = "reflections"

    id: str = Field(default_factory=lambda: f"ref_{epoch_millis()}_{random_base36()}")
    content: str
    context: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    processed: bool = False
