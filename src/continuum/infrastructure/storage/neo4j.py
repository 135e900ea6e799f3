"""Neo4j-backed document store."""

from collections.abc import Mapping, Sequence
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncSession

from continuum.core.base import ErrorLevel, ServiceErrorDetails
from continuum.core.config import Settings
from continuum.core.decorators import with_error_handling, with_session
from continuum.core.errors import CollaboratorUnavailableError
from continuum.core.logging import get_logger
from continuum.domain.models.base import to_storable
from continuum.infrastructure.storage import RangeFilter, SortSpec
from continuum.infrastructure.storage.codec import encode_item, flatten, flatten_update, property_key, unflatten
from continuum.infrastructure.storage.queries import DocumentQueries

logger = get_logger(__name__)


@with_error_handling(error_level=ErrorLevel.ERROR)
async def create_neo4j_driver(
    settings: Settings,
    max_connection_pool_size: int = 50,
    max_connection_lifetime: int = 3600,
) -> AsyncDriver:
    """Create a Neo4j driver and verify it can reach the server.

    Raises:
        CollaboratorUnavailableError: If the server cannot be reached
    """
    logger.info(
        "Creating Neo4j driver",
        extra={
            "uri": settings.neo4j_uri,
            "pool_size": max_connection_pool_size,
            "connection_lifetime": max_connection_lifetime,
        },
    )

    driver = AsyncGraphDatabase.driver(
        settings.neo4j_uri,
        auth=(settings.neo4j_user, settings.neo4j_password),
        max_connection_pool_size=max_connection_pool_size,
        max_connection_lifetime=max_connection_lifetime,
    )

    try:
        await driver.verify_connectivity()
    except Exception as e:
        await driver.close()
        raise CollaboratorUnavailableError(
            f"Neo4j unreachable at {settings.neo4j_uri}: {e}",
            details=ServiceErrorDetails(
                source="neo4j_document_store",
                operation="verify_connectivity",
                service_name="neo4j",
                endpoint=settings.neo4j_uri,
            ),
        ) from e

    logger.info("Neo4j connection established")
    return driver


class Neo4jDocumentStore:
    """DocumentStore over Neo4j nodes.

    Nested documents are flattened into node properties by the codec;
    increments and appends are single ``SET`` statements, so they are atomic
    per document without read-modify-write.
    """

    def __init__(self, driver: AsyncDriver):
        self.driver = driver

    @with_error_handling(error_level=ErrorLevel.WARNING)
    @with_session()
    async def ensure_constraints(self, session: AsyncSession, collections: Sequence[str]) -> None:
        for collection in collections:
            query, params = DocumentQueries.ensure_constraint(collection)
            await session.run(query, params)
        logger.info("Document constraints ensured", extra={"collections": list(collections)})

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def get(self, session: AsyncSession, collection: str, doc_id: str) -> dict[str, Any] | None:
        query, params = DocumentQueries.get(collection, doc_id)
        result = await session.run(query, params)
        record = await result.single()
        if record is None:
            return None
        return unflatten(record["doc"])

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def insert(self, session: AsyncSession, collection: str, doc_id: str, document: Mapping[str, Any]) -> None:
        properties = flatten(to_storable({**document, "id": doc_id}))
        query, params = DocumentQueries.insert(collection, properties)
        await session.run(query, params)
        logger.debug(f"Inserted {collection} document {doc_id}")

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def upsert(
        self, session: AsyncSession, collection: str, doc_id: str, fields: Mapping[str, Any]
    ) -> dict[str, Any]:
        properties = flatten_update(to_storable(dict(fields)))
        properties.pop("id", None)
        query, params = DocumentQueries.upsert(collection, doc_id, properties)
        result = await session.run(query, params)
        record = await result.single()
        return unflatten(record["doc"]) if record else {}

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def find(
        self,
        session: AsyncSession,
        collection: str,
        *,
        ranges: Sequence[RangeFilter] = (),
        equals: Mapping[str, Any] | None = None,
        sort: SortSpec = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        query, params = DocumentQueries.find(collection, ranges, to_storable(dict(equals or {})), sort, limit)
        result = await session.run(query, params)
        return [unflatten(record["doc"]) async for record in result]

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def increment(
        self, session: AsyncSession, collection: str, doc_id: str, path: str, delta: int | float = 1
    ) -> bool:
        query, params = DocumentQueries.increment(collection, doc_id, path, delta)
        result = await session.run(query, params)
        return await result.single() is not None

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def push(self, session: AsyncSession, collection: str, doc_id: str, path: str, value: Any) -> bool:
        key, item = encode_item(property_key(path), to_storable(value))
        query, params = DocumentQueries.push(collection, doc_id, key, item)
        result = await session.run(query, params)
        return await result.single() is not None

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def count(self, session: AsyncSession, collection: str, equals: Mapping[str, Any] | None = None) -> int:
        query, params = DocumentQueries.count(collection, to_storable(dict(equals or {})))
        result = await session.run(query, params)
        record = await result.single()
        return int(record["total"]) if record else 0

    async def close(self) -> None:
        await self.driver.close()
        logger.info("Neo4j driver closed")
