from datetime import datetime
from enum import Enum
from typing import Any, ClassVar
from uuid import uuid4

from pydantic import Field

from continuum.domain.models.base import DocumentModel
from continuum.domain.models.utils import utc_now


class TriggerType(str, Enum):
    TEMPORAL = "temporal"
    CONDITIONAL = "conditional"
    EVENT = "event"


class Trigger(DocumentModel):
    """A scheduled or event-driven invocation definition."""

    collection: ClassVar[str] = "triggers"

    id: str = Field(default_factory=lambda: f"trigger_{uuid4().hex[:12]}")
    name: str
    type: TriggerType = TriggerType.TEMPORAL
    schedule: str | None = None  # cron expression for temporal triggers
    condition: str | None = None
    event: str | None = None
    purpose: str
    context: dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    last_fired: datetime | None = None
    fire_count: int = Field(default=0, ge=0)

    @property
    def is_schedulable(self) -> bool:
        return self.enabled and self.type == TriggerType.TEMPORAL and bool(self.schedule)
