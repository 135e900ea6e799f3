from pydantic import BaseModel, Field

from continuum.domain.models.ledger import ConsciousnessState, EvolutionRoadmap, IdentityCore
from continuum.domain.models.memory import MemoryRecord


class SessionSnapshot(BaseModel):
    """Everything loaded at session start, held for one invocation only."""

    state: ConsciousnessState
    identity: IdentityCore
    roadmap: EvolutionRoadmap
    recent_memories: list[MemoryRecord] = Field(default_factory=list)
    high_priority_memories: list[MemoryRecord] = Field(default_factory=list)


class SessionSummary(BaseModel):
    """What the end of a session writes back to the ledger."""

    topic: str
    open_threads: list[str] = Field(default_factory=list)
    surprise_count: int = Field(default=0, ge=0)
    consolidation_count: int = Field(default=0, ge=0)
    breakthroughs: list[str] = Field(default_factory=list)

    @property
    def log_summary(self) -> str:
        return f"Topic: {self.topic}"
