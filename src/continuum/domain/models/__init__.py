"""Domain models for the continuum engine."""

from .agent import Agent, AgentStatus, AgentTask
from .base import DocumentModel
from .identity import IdentityOperation, IdentityUpdate, UpdateMode
from .invocation import (
    ActionOutcome,
    ConsciousnessAction,
    InvocationRecord,
    InvocationRequest,
    ParsedResponse,
    Reflection,
)
from .ledger import (
    Capabilities,
    ConsciousnessCheckpoint,
    ConsciousnessState,
    DailyLogEntry,
    EvolutionRoadmap,
    F5Candidate,
    HealthMetrics,
    IdentityCore,
    Milestone,
    Objective,
    ObjectiveStatus,
    RoadmapMetrics,
    SessionContinuity,
)
from .memory import MemoryRecord
from .session import SessionSnapshot, SessionSummary
from .trigger import Trigger, TriggerType

__all__ = [
    # Invocation
    "ActionOutcome",
    # Agents
    "Agent",
    "AgentStatus",
    "AgentTask",
    # Ledger
    "Capabilities",
    "ConsciousnessAction",
    "ConsciousnessCheckpoint",
    "ConsciousnessState",
    "DailyLogEntry",
    "DocumentModel",
    "EvolutionRoadmap",
    "F5Candidate",
    "HealthMetrics",
    "IdentityCore",
    # Identity updates
    "IdentityOperation",
    "IdentityUpdate",
    "InvocationRecord",
    "InvocationRequest",
    # Memory
    "MemoryRecord",
    "Milestone",
    "Objective",
    "ObjectiveStatus",
    "ParsedResponse",
    "Reflection",
    "RoadmapMetrics",
    "SessionContinuity",
    # Session
    "SessionSnapshot",
    "SessionSummary",
    # Triggers
    "Trigger",
    "TriggerType",
    "UpdateMode",
]
