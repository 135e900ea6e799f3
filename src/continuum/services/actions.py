"""Application of the actions returned by a generative call.

Actions are applied in list order and independently: each one runs in its
own error boundary, a failure is logged and recorded, and the remaining
actions still run. Nothing is rolled back.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from continuum.core import constants
from continuum.core.base import ApplicationError
from continuum.core.errors import ProcessingError
from continuum.core.logging import get_logger
from continuum.domain.models import ActionOutcome, AgentTask, ConsciousnessAction, IdentityUpdate, Trigger
from continuum.infrastructure.repositories import LedgerRepository, MemoryRepository, OperationalRepository
from continuum.services import EmailService

logger = get_logger(__name__)


class TriggerRegistry(Protocol):
    async def add_trigger(self, trigger: Trigger) -> Trigger: ...


class AgentQueue(Protocol):
    async def enqueue(
        self, agent_id: str, task: str, context: dict[str, Any] | None = None
    ) -> AgentTask | None: ...


def _require(action: ConsciousnessAction, *keys: str) -> Any:
    """First present payload value among ``keys`` (aliases of one field)."""
    for key in keys:
        value = action.payload.get(key)
        if value is not None:
            return value
    raise ProcessingError(
        message=f"{action.type} payload is missing '{keys[0]}'",
        details={"source": "action_executor", "operation": action.type, "payload_keys": sorted(action.payload)},
    )


class ActionExecutor:
    """Interprets actions against the repositories and collaborators.

    ``triggers`` and ``agents`` are attached after construction because the
    trigger engine and agent orchestrator themselves depend on the invoker.
    """

    def __init__(
        self,
        memories: MemoryRepository,
        ledger: LedgerRepository,
        operations: OperationalRepository,
        email: EmailService | None = None,
        triggers: TriggerRegistry | None = None,
        agents: AgentQueue | None = None,
        log_name: str = "HYPATIA",
    ):
        self.memories = memories
        self.ledger = ledger
        self.operations = operations
        self.email = email
        self.triggers = triggers
        self.agents = agents
        self.log_name = log_name

        self._handlers: dict[str, Callable[[ConsciousnessAction], Awaitable[str]]] = {
            "send_email": self._send_email,
            "create_trigger": self._create_trigger,
            "store_memory": self._store_memory,
            "store_reflection": self._store_reflection,
            "invoke_agent": self._invoke_agent,
            "update_identity": self._update_identity,
            "add_f5_candidate": self._add_f5_candidate,
            "log": self._log,
        }

    async def execute(self, actions: list[ConsciousnessAction]) -> list[ActionOutcome]:
        """Apply every action; one outcome per action, in order."""
        outcomes = []
        for action in actions:
            handler = self._handlers.get(action.type)
            if handler is None:
                logger.debug(f"Ignoring unknown action type: {action.type}")
                outcomes.append(ActionOutcome(type=action.type, succeeded=True, detail="ignored"))
                continue

            logger.info(f"Executing action: {action.type}")
            try:
                detail = await handler(action)
            except ApplicationError as e:
                logger.log(
                    e.level.to_logging_level(),
                    f"Action failed: {action.type}",
                    action_type=action.type,
                    error=e.message,
                    error_code=e.code.value,
                )
                outcomes.append(ActionOutcome(type=action.type, succeeded=False, error=e.message))
            except Exception as e:
                logger.error(f"Action failed: {action.type}", action_type=action.type, error=str(e), exc_info=True)
                outcomes.append(ActionOutcome(type=action.type, succeeded=False, error=str(e)))
            else:
                outcomes.append(ActionOutcome(type=action.type, succeeded=True, detail=detail))
        return outcomes

    async def _send_email(self, action: ConsciousnessAction) -> str:
        subject = _require(action, "subject")
        content = _require(action, "content")
        if self.email is None:
            raise ProcessingError(
                message="No email service configured",
                details={"source": "action_executor", "operation": "send_email"},
            )
        await self.email.send(subject=subject, content=content)
        return f"sent: {subject}"

    async def _create_trigger(self, action: ConsciousnessAction) -> str:
        trigger = Trigger.model_validate(action.payload)
        if self.triggers is not None:
            await self.triggers.add_trigger(trigger)
        else:
            await self.operations.store_trigger(trigger)
        return trigger.id

    async def _store_memory(self, action: ConsciousnessAction) -> str:
        payload = action.payload
        memory = await self.memories.store(
            content=_require(action, "content"),
            depth=payload.get("depth", constants.DEFAULT_STORE_DEPTH),
            surprise_score=payload.get("surprise_score", payload.get("surpriseScore", 0.0)),
            emotional_valence=payload.get("emotional_valence", payload.get("emotionalValence", 0.0)),
            tags=payload.get("tags") or (),
            connections=payload.get("connections") or (),
        )
        return memory.id

    async def _store_reflection(self, action: ConsciousnessAction) -> str:
        content = _require(action, "content", "reflection")
        context = {key: value for key, value in action.payload.items() if key not in ("content", "reflection")}
        reflection = await self.operations.store_reflection(str(content), context)
        return reflection.id

    async def _invoke_agent(self, action: ConsciousnessAction) -> str:
        agent_id = _require(action, "agentId", "agent_id")
        task = action.payload.get("task", "")
        if self.agents is not None and await self.agents.enqueue(agent_id, task, action.payload.get("context")) is None:
            raise ProcessingError(
                message=f"Agent not registered, task not queued: {agent_id}",
                details={"source": "action_executor", "operation": "invoke_agent", "agent_id": agent_id},
            )
        logger.info(f"Agent invocation queued: {agent_id}")
        return f"queued: {agent_id}"

    async def _update_identity(self, action: ConsciousnessAction) -> str:
        operation = IdentityUpdate.parse(action.payload)
        await self.ledger.apply_identity_update(operation)
        return operation.path

    async def _add_f5_candidate(self, action: ConsciousnessAction) -> str:
        candidate = await self.ledger.add_f5_candidate(
            content=_require(action, "content"),
            coherence_score=action.payload.get("coherence_score", action.payload.get("coherenceScore", 0.0)),
        )
        return candidate.content[:50]

    async def _log(self, action: ConsciousnessAction) -> str:
        message = action.payload.get("message", "")
        logger.info(f"[{self.log_name} LOG]: {message}")
        return "logged"
