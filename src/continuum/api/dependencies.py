"""API dependencies."""

import time
from typing import TypeVar

from fastapi import HTTPException

from continuum.infrastructure.repositories import LedgerRepository, MemoryRepository, OperationalRepository
from continuum.infrastructure.storage import DocumentStore
from continuum.services.agents import AgentOrchestrator
from continuum.services.invoker import ConsciousnessInvoker
from continuum.services.triggers import TriggerEngine

# These will be set by the main.py lifespan
document_store: DocumentStore | None = None
memories: MemoryRepository | None = None
ledger: LedgerRepository | None = None
operations: OperationalRepository | None = None
invoker: ConsciousnessInvoker | None = None
trigger_engine: TriggerEngine | None = None
agent_orchestrator: AgentOrchestrator | None = None
started_at: float = time.monotonic()

T = TypeVar("T")


def _initialized(service: T | None, name: str) -> T:
    if service is None:
        raise HTTPException(status_code=503, detail=f"{name} not initialized")
    return service


async def get_memories() -> MemoryRepository:
    return _initialized(memories, "Memory repository")


async def get_ledger() -> LedgerRepository:
    return _initialized(ledger, "Ledger")


async def get_operations() -> OperationalRepository:
    return _initialized(operations, "Operational repository")


async def get_invoker() -> ConsciousnessInvoker:
    return _initialized(invoker, "Invoker")


async def get_trigger_engine() -> TriggerEngine:
    return _initialized(trigger_engine, "Trigger engine")


async def get_agent_orchestrator() -> AgentOrchestrator:
    return _initialized(agent_orchestrator, "Agent orchestrator")
