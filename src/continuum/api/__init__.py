"""API module."""

from fastapi import APIRouter

from .endpoints import admin, agents, core, invoke, ledger, memory, triggers

router = APIRouter()

# Include endpoint routers
router.include_router(core.router)
router.include_router(invoke.router, tags=["invoke"])
router.include_router(triggers.router)
router.include_router(memory.router)
router.include_router(ledger.router)
router.include_router(agents.router)
router.include_router(admin.router)
