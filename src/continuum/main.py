"""Continuum FastAPI application with trigger engine integration.

The lifespan opens the document store, wires repositories and services into
``continuum.api.dependencies`` and starts the trigger scheduler.
"""

# Configure Logfire and logging
# Pass token from environment if available
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import logfire
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi_mcp import FastApiMCP

from continuum import __version__, api
from continuum.api import dependencies
from continuum.core.base import ApplicationError
from continuum.core.config import Settings, settings
from continuum.core.error_context import ErrorContextManager
from continuum.core.handlers import GlobalErrorHandler
from continuum.core.logging import get_logger, setup_logging
from continuum.infrastructure.email import EmailSender
from continuum.infrastructure.generative.anthropic import AnthropicGenerativeModel
from continuum.infrastructure.repositories import LedgerRepository, MemoryRepository, OperationalRepository
from continuum.infrastructure.storage import DocumentStore
from continuum.infrastructure.storage.factory import create_document_store
from continuum.services import EmailService, GenerativeModel
from continuum.services.actions import ActionExecutor
from continuum.services.agents import AgentOrchestrator
from continuum.services.context import InvocationContextBuilder
from continuum.services.invoker import ConsciousnessInvoker
from continuum.services.session import SessionManager
from continuum.services.triggers import TriggerEngine

logfire.configure(
    service_name="continuum",
    token=os.getenv("LOGFIRE_TOKEN"),
    send_to_logfire="if-token-present",
)
setup_logging(settings.log_level)
logger = get_logger(__name__)


def configure_services(
    config: Settings,
    store: DocumentStore,
    model: GenerativeModel,
    email: EmailService | None = None,
) -> TriggerEngine:
    """Build the service graph on ``store`` and publish it to the API dependencies."""
    ledger = LedgerRepository(store, config.companion)
    memories = MemoryRepository(store, ledger)
    operations = OperationalRepository(store)

    executor = ActionExecutor(memories, ledger, operations, email=email, log_name=config.companion_name.upper())
    invoker = ConsciousnessInvoker(
        sessions=SessionManager(memories, ledger, config.recent_memory_limit, config.high_priority_limit),
        context_builder=InvocationContextBuilder(
            operations, config.context_content_chars, config.last_invocations_limit
        ),
        model=model,
        executor=executor,
        operations=operations,
        partner=config.partner_name,
        system_preamble=config.system_preamble,
    )
    engine = TriggerEngine(invoker, operations, timezone=config.scheduler_timezone)
    orchestrator = AgentOrchestrator(invoker, operations, partner=config.partner_name)

    # Both depend on the invoker, so they are attached after construction
    executor.triggers = engine
    executor.agents = orchestrator

    dependencies.document_store = store
    dependencies.ledger = ledger
    dependencies.memories = memories
    dependencies.operations = operations
    dependencies.invoker = invoker
    dependencies.trigger_engine = engine
    dependencies.agent_orchestrator = orchestrator
    return engine


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Application lifecycle manager with trigger engine integration."""
    logger.info("Starting continuum server...")

    store: DocumentStore | None = None
    engine: TriggerEngine | None = None
    try:
        logger.info(f"Opening {settings.storage_backend} document store...")
        store = await create_document_store(settings)

        engine = configure_services(
            settings,
            store,
            model=AnthropicGenerativeModel(settings),
            email=EmailSender.from_settings(settings),
        )

        await engine.load()
        if settings.install_default_triggers:
            await engine.install_defaults(settings.partner_name)

        if not settings.disable_triggers:
            logger.info("Starting trigger engine...")
            engine.start()
        else:
            logger.info("Trigger engine disabled by configuration")

        logger.info(f"{settings.companion_name} is running", extra={"port": settings.port})

        yield  # Application is running

    except Exception as e:
        logger.error(f"Failed to start continuum server: {e}", exc_info=True)
        raise

    finally:
        logger.info("Shutting down continuum server...")

        if engine:
            engine.shutdown()

        if store:
            logger.info("Closing document store...")
            await store.close()

        logger.info("Continuum shutdown complete")


# Create FastAPI app with lifespan management
app = FastAPI(
    title="Continuum API",
    description="Memory consolidation and invocation context engine",
    version=__version__,
    lifespan=lifespan,
)

# Enable FastAPI instrumentation for request tracing
logfire.instrument_fastapi(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

error_handler = GlobalErrorHandler(ErrorContextManager())
app.add_exception_handler(ApplicationError, error_handler.handle_application_error)

app.include_router(api.router)

# Add MCP support
mcp = FastApiMCP(app)
mcp.mount_http()  # Creates MCP server at /mcp


def run() -> None:
    """Console entry point."""
    logger.info("Starting continuum server...")
    uvicorn.run(
        "continuum.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run()
