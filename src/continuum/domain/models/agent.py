from datetime import datetime
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, Field

from continuum.domain.models.base import DocumentModel
from continuum.domain.models.utils import epoch_millis, random_base36, utc_now


class AgentStatus(str, Enum):
    IDLE = "idle"
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class Agent(BaseModel):
    """A registered sub-agent that can be handed a task."""

    id: str
    name: str
    purpose: str
    model: str
    capabilities: list[str] = Field(default_factory=list)
    status: AgentStatus = AgentStatus.IDLE
    last_run: datetime | None = None


class AgentTask(DocumentModel):
    """A task handed to an agent, persisted so it survives until dispatched."""

    collection: ClassVar[str] = "agent_tasks"

    id: str = Field(default_factory=lambda: f"task_{epoch_millis()}_{random_base36()}")
    agent_id: str
    task: str
    context: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    dispatched: bool = False
