from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict


def to_storable(value: Any) -> Any:
    """Convert a dumped value into something every document store accepts."""
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: to_storable(item) for key, item in value.items()}
    if isinstance(value, set | frozenset):
        return sorted(to_storable(item) for item in value)
    if isinstance(value, list | tuple):
        return [to_storable(item) for item in value]
    return value


def from_storable(value: Any) -> Any:
    """Undo store-specific wrappers (e.g. neo4j temporal types)."""
    to_native = getattr(value, "to_native", None)
    if callable(to_native):
        native = to_native()
        if isinstance(native, datetime) and native.tzinfo is None:
            native = native.replace(tzinfo=UTC)
        return native
    if isinstance(value, dict):
        return {key: from_storable(item) for key, item in value.items()}
    if isinstance(value, list):
        return [from_storable(item) for item in value]
    return value


class DocumentModel(BaseModel):
    """Base class for everything persisted through a DocumentStore.

    Datetimes are stored as epoch seconds so that range filters and sorts
    behave identically across backends; pydantic parses them back.
    """

    model_config = ConfigDict(populate_by_name=True)

    collection: ClassVar[str]

    def to_document(self) -> dict[str, Any]:
        """Convert to a store-compatible document."""
        return to_storable(self.model_dump())

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Self:
        """Create an instance from a stored document."""
        data = {key: value for key, value in document.items() if not key.startswith("_")}
        return cls.model_validate(from_storable(data))
