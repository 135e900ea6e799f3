"""Memory record domain model."""

from datetime import datetime
from typing import ClassVar

from pydantic import Field, computed_field, field_validator

from continuum.core.constants import PENDING_CONSOLIDATION_THRESHOLD
from continuum.domain.models.base import DocumentModel
from continuum.domain.models.utils import epoch_millis, random_base36, utc_now
from continuum.domain.salience import ConsolidationTier, classify


def new_memory_id() -> str:
    return f"mem_{epoch_millis()}_{random_base36()}"


class MemoryRecord(DocumentModel):
    """A scored, tiered memory.

    ``consolidation_tier`` is always derived from ``depth``; any stored value
    is ignored on load and recomputed.
    """

    collection: ClassVar[str] = "cms_memories"

    id: str = Field(default_factory=new_memory_id, frozen=True)
    content: str
    depth: float = Field(ge=0.0, le=1.0)
    surprise_score: float = Field(default=0.0, ge=0.0, le=1.0)
    emotional_valence: float = Field(default=0.0, ge=-1.0, le=1.0)
    tags: set[str] = Field(default_factory=set)
    # Weak references to other memories; dangling ids are allowed.
    connections: set[str] = Field(default_factory=set)
    created_at: datetime = Field(default_factory=utc_now)
    last_accessed: datetime = Field(default_factory=utc_now)
    access_count: int = Field(default=1, ge=0)
    consolidated: bool = False

    @field_validator("tags", "connections", mode="before")
    @classmethod
    def _coerce_to_set(cls, value):
        if value is None:
            return set()
        if isinstance(value, str):
            return {value}
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def consolidation_tier(self) -> ConsolidationTier:
        return classify(self.depth)

    @property
    def awaits_consolidation(self) -> bool:
        return self.depth > PENDING_CONSOLIDATION_THRESHOLD and not self.consolidated

    def transport_view(self, max_chars: int) -> dict:
        """The slice of a memory that is shown to the generative model."""
        return {
            "content": self.content[:max_chars],
            "depth": self.depth,
            "tags": sorted(self.tags),
            "created_at": self.created_at.isoformat(),
        }

    def __str__(self) -> str:
        return f"MemoryRecord(content='{self.content[:50]}...', tier={self.consolidation_tier.value})"
