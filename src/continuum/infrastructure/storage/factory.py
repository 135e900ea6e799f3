"""Construction of the configured document store."""

from continuum.core.config import Settings
from continuum.core.logging import get_logger
from continuum.domain.models import (
    AgentTask,
    ConsciousnessState,
    EvolutionRoadmap,
    IdentityCore,
    InvocationRecord,
    MemoryRecord,
    Reflection,
    Trigger,
)
from continuum.infrastructure.storage import DocumentStore
from continuum.infrastructure.storage.local import LocalDocumentStore
from continuum.infrastructure.storage.neo4j import Neo4jDocumentStore, create_neo4j_driver

logger = get_logger(__name__)

COLLECTIONS = (
    MemoryRecord.collection,
    ConsciousnessState.collection,
    IdentityCore.collection,
    EvolutionRoadmap.collection,
    Trigger.collection,
    Reflection.collection,
    InvocationRecord.collection,
    AgentTask.collection,
)


async def create_document_store(settings: Settings) -> DocumentStore:
    """Build the store selected by ``settings.storage_backend``."""
    if settings.storage_backend == "local":
        logger.info("Using process-local document store")
        return LocalDocumentStore()

    driver = await create_neo4j_driver(settings)
    store = Neo4jDocumentStore(driver)
    await store.ensure_constraints(COLLECTIONS)
    return store
