"""Centralized Cypher definitions for the document store.

Every document is a ``(:Document:<collection>)`` node keyed by ``id``.
Labels and property keys cannot be parameterized in Cypher, so they are
validated by the codec before being interpolated here.
"""

from collections.abc import Mapping, Sequence
from typing import Any, LiteralString, cast

from continuum.infrastructure.storage import DESCENDING, RangeFilter, SortSpec
from continuum.infrastructure.storage.codec import property_key, validate_identifier


class DocumentQueries:
    """All document queries in one place."""

    @staticmethod
    def ensure_constraint(collection: str) -> tuple[LiteralString, dict[str, Any]]:
        label = validate_identifier(collection)
        query = f"""
        CREATE CONSTRAINT document_{label}_id IF NOT EXISTS
        FOR (d:`{label}`) REQUIRE d.id IS UNIQUE
        """
        return cast(LiteralString, query), {}

    @staticmethod
    def get(collection: str, doc_id: str) -> tuple[LiteralString, dict[str, Any]]:
        label = validate_identifier(collection)
        query = f"""
        MATCH (d:Document:`{label}` {{id: $id}})
        RETURN properties(d) AS doc
        """
        return cast(LiteralString, query), {"id": doc_id}

    @staticmethod
    def insert(collection: str, properties: dict[str, Any]) -> tuple[LiteralString, dict[str, Any]]:
        label = validate_identifier(collection)
        query = f"""
        CREATE (d:Document:`{label}`)
        SET d = $properties
        RETURN d.id AS id
        """
        return cast(LiteralString, query), {"properties": properties}

    @staticmethod
    def upsert(collection: str, doc_id: str, properties: dict[str, Any]) -> tuple[LiteralString, dict[str, Any]]:
        """MERGE by id and patch properties; ``null`` values remove a property."""
        label = validate_identifier(collection)
        query = f"""
        MERGE (d:Document:`{label}` {{id: $id}})
        SET d += $properties
        RETURN properties(d) AS doc
        """
        return cast(LiteralString, query), {"id": doc_id, "properties": properties}

    @staticmethod
    def increment(collection: str, doc_id: str, path: str, delta: int | float) -> tuple[LiteralString, dict[str, Any]]:
        label = validate_identifier(collection)
        key = property_key(path)
        query = f"""
        MATCH (d:Document:`{label}` {{id: $id}})
        SET d.`{key}` = coalesce(d.`{key}`, 0) + $delta
        RETURN d.`{key}` AS value
        """
        return cast(LiteralString, query), {"id": doc_id, "delta": delta}

    @staticmethod
    def push(collection: str, doc_id: str, key: str, item: Any) -> tuple[LiteralString, dict[str, Any]]:
        """Append one already-encoded element to a list property."""
        label = validate_identifier(collection)
        query = f"""
        MATCH (d:Document:`{label}` {{id: $id}})
        SET d.`{key}` = coalesce(d.`{key}`, []) + [$item]
        RETURN size(d.`{key}`) AS size
        """
        return cast(LiteralString, query), {"id": doc_id, "item": item}

    @staticmethod
    def _where(
        ranges: Sequence[RangeFilter], equals: Mapping[str, Any] | None
    ) -> tuple[str, dict[str, Any]]:
        conditions: list[str] = []
        params: dict[str, Any] = {}
        for index, bound in enumerate(ranges):
            key = property_key(bound.field)
            if bound.gte is not None:
                conditions.append(f"d.`{key}` >= $range_{index}_gte")
                params[f"range_{index}_gte"] = bound.gte
            if bound.lte is not None:
                conditions.append(f"d.`{key}` <= $range_{index}_lte")
                params[f"range_{index}_lte"] = bound.lte
        for index, (path, value) in enumerate((equals or {}).items()):
            key = property_key(path)
            conditions.append(f"d.`{key}` = $eq_{index}")
            params[f"eq_{index}"] = value
        clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return clause, params

    @staticmethod
    def find(
        collection: str,
        ranges: Sequence[RangeFilter] = (),
        equals: Mapping[str, Any] | None = None,
        sort: SortSpec = (),
        limit: int | None = None,
    ) -> tuple[LiteralString, dict[str, Any]]:
        label = validate_identifier(collection)
        where, params = DocumentQueries._where(ranges, equals)

        query_parts = [f"MATCH (d:Document:`{label}`)"]
        if where:
            query_parts.append(where)
        query_parts.append("RETURN properties(d) AS doc")
        if sort:
            order = ", ".join(
                f"d.`{property_key(field)}` {'DESC' if direction == DESCENDING else 'ASC'}" for field, direction in sort
            )
            query_parts.append(f"ORDER BY {order}")
        if limit is not None:
            query_parts.append("LIMIT $limit")
            params["limit"] = limit

        return cast(LiteralString, " ".join(query_parts)), params

    @staticmethod
    def count(collection: str, equals: Mapping[str, Any] | None = None) -> tuple[LiteralString, dict[str, Any]]:
        label = validate_identifier(collection)
        where, params = DocumentQueries._where((), equals)
        query = f"MATCH (d:Document:`{label}`) {where} RETURN count(d) AS total"
        return cast(LiteralString, query), params
