"""Document storage boundary.

Repositories talk to a ``DocumentStore``: a small document-oriented
persistence interface with upsert-by-id, range filters, sorting, limits and
atomic increment/append primitives. Paths are dotted (``health_metrics.total_invocations``)
and address nested maps.
"""

from collections.abc import Mapping, Sequence
from typing import Any, NamedTuple, Protocol, runtime_checkable

ASCENDING = 1
DESCENDING = -1


class RangeFilter(NamedTuple):
    """Inclusive bounds on a numeric field; ``None`` leaves a side open."""

    field: str
    gte: float | None = None
    lte: float | None = None


SortSpec = Sequence[tuple[str, int]]


@runtime_checkable
class DocumentStore(Protocol):
    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None: ...

    async def insert(self, collection: str, doc_id: str, document: Mapping[str, Any]) -> None: ...

    async def upsert(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> dict[str, Any]: ...

    async def find(
        self,
        collection: str,
        *,
        ranges: Sequence[RangeFilter] = (),
        equals: Mapping[str, Any] | None = None,
        sort: SortSpec = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...

    async def increment(self, collection: str, doc_id: str, path: str, delta: int | float = 1) -> bool: ...

    async def push(self, collection: str, doc_id: str, path: str, value: Any) -> bool: ...

    async def count(self, collection: str, equals: Mapping[str, Any] | None = None) -> int: ...

    async def close(self) -> None: ...


__all__ = ["ASCENDING", "DESCENDING", "DocumentStore", "RangeFilter", "SortSpec"]
