"""Process-local document store.

Used for headless runs without a database and by the test-suite. Same
semantics as the Neo4j store: values are normalized with ``to_storable``
(datetimes become epoch seconds) and every operation is atomic with respect
to the others.
"""

import asyncio
import copy
from collections import defaultdict
from collections.abc import Mapping, Sequence
from typing import Any

from continuum.core.logging import get_logger
from continuum.domain.models.base import to_storable
from continuum.infrastructure.storage import DESCENDING, RangeFilter, SortSpec

logger = get_logger(__name__)

_MISSING = object()


def _lookup(document: Mapping[str, Any], path: str) -> Any:
    value: Any = document
    for segment in path.split("."):
        if not isinstance(value, Mapping) or segment not in value:
            return _MISSING
        value = value[segment]
    return value


def _parent(document: dict[str, Any], path: str) -> tuple[dict[str, Any], str]:
    *segments, leaf = path.split(".")
    target = document
    for segment in segments:
        child = target.get(segment)
        if not isinstance(child, dict):
            child = {}
            target[segment] = child
        target = child
    return target, leaf


def _matches(document: Mapping[str, Any], ranges: Sequence[RangeFilter], equals: Mapping[str, Any]) -> bool:
    for bound in ranges:
        value = _lookup(document, bound.field)
        if value is _MISSING or value is None:
            return False
        if bound.gte is not None and value < bound.gte:
            return False
        if bound.lte is not None and value > bound.lte:
            return False
    return all(_lookup(document, path) == expected for path, expected in equals.items())


def _sort_key(path: str):
    def key(document: Mapping[str, Any]) -> tuple[bool, Any]:
        value = _lookup(document, path)
        present = value is not _MISSING and value is not None
        return present, value if present else 0

    return key


class LocalDocumentStore:
    """In-memory DocumentStore guarded by a single asyncio lock."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._lock = asyncio.Lock()

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        async with self._lock:
            document = self._collections[collection].get(doc_id)
            return copy.deepcopy(document) if document is not None else None

    async def insert(self, collection: str, doc_id: str, document: Mapping[str, Any]) -> None:
        async with self._lock:
            self._collections[collection][doc_id] = to_storable({**document, "id": doc_id})
        logger.debug(f"Inserted {collection} document {doc_id}")

    async def upsert(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        async with self._lock:
            document = self._collections[collection].setdefault(doc_id, {"id": doc_id})
            for path, value in fields.items():
                target, leaf = _parent(document, path)
                target[leaf] = to_storable(value)
            return copy.deepcopy(document)

    async def find(
        self,
        collection: str,
        *,
        ranges: Sequence[RangeFilter] = (),
        equals: Mapping[str, Any] | None = None,
        sort: SortSpec = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        wanted = to_storable(dict(equals or {}))
        async with self._lock:
            documents = [
                copy.deepcopy(document)
                for document in self._collections[collection].values()
                if _matches(document, ranges, wanted)
            ]

        # Stable sorts applied from the least significant key up
        for path, direction in reversed(list(sort)):
            documents.sort(key=_sort_key(path), reverse=direction == DESCENDING)

        return documents if limit is None else documents[:limit]

    async def increment(self, collection: str, doc_id: str, path: str, delta: int | float = 1) -> bool:
        async with self._lock:
            document = self._collections[collection].get(doc_id)
            if document is None:
                return False
            target, leaf = _parent(document, path)
            target[leaf] = (target.get(leaf) or 0) + delta
            return True

    async def push(self, collection: str, doc_id: str, path: str, value: Any) -> bool:
        async with self._lock:
            document = self._collections[collection].get(doc_id)
            if document is None:
                return False
            target, leaf = _parent(document, path)
            items = target.get(leaf)
            target[leaf] = [*(items or []), to_storable(value)]
            return True

    async def count(self, collection: str, equals: Mapping[str, Any] | None = None) -> int:
        wanted = to_storable(dict(equals or {}))
        async with self._lock:
            return sum(1 for document in self._collections[collection].values() if _matches(document, (), wanted))

    async def close(self) -> None:
        async with self._lock:
            self._collections.clear()
