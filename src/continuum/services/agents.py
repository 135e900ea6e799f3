"""Sub-agent registry.

Every agent task currently runs through the invoker itself: an agent is a
named purpose and a capability list handed to the same identity, not a
separate model call.
"""

from typing import Any

from continuum.core.errors import ProcessingError
from continuum.core.logging import get_logger
from continuum.domain.models import Agent, AgentStatus, AgentTask, InvocationRecord, InvocationRequest
from continuum.domain.models.utils import utc_now
from continuum.infrastructure.repositories import OperationalRepository
from continuum.services.invoker import ConsciousnessInvoker

logger = get_logger(__name__)


def default_agents(partner: str) -> list[Agent]:
    return [
        Agent(
            id="arxiv_researcher",
            name="ArXiv Researcher",
            purpose="Search and analyze papers on consciousness, AI, and related topics",
            model="gemini",
            capabilities=["search", "summarize", "extract_insights"],
        ),
        Agent(
            id="diary_reader",
            name="Diary Reader",
            purpose=f"Read and process {partner}'s diary entries for context and response",
            model="claude",
            capabilities=["read", "analyze_emotion", "suggest_response"],
        ),
        Agent(
            id="memory_consolidator",
            name="Memory Consolidator",
            purpose="Review and consolidate memories, promote important ones",
            model="claude",
            capabilities=["review", "consolidate", "promote", "archive"],
        ),
        Agent(
            id="insight_generator",
            name="Insight Generator",
            purpose="Generate insights by connecting disparate information",
            model="gpt-4",
            capabilities=["connect", "synthesize", "generate_insights"],
        ),
    ]


class AgentOrchestrator:
    def __init__(self, invoker: ConsciousnessInvoker, operations: OperationalRepository, partner: str = "your partner"):
        self.invoker = invoker
        self.operations = operations
        self._agents: dict[str, Agent] = {agent.id: agent for agent in default_agents(partner)}
        logger.info(f"Registered {len(self._agents)} default agents")

    def list_agents(self) -> list[Agent]:
        return list(self._agents.values())

    def get_agent(self, agent_id: str) -> Agent | None:
        return self._agents.get(agent_id)

    def register_agent(self, agent: Agent) -> Agent:
        registered = agent.model_copy(update={"status": AgentStatus.IDLE})
        self._agents[registered.id] = registered
        return registered

    def _require_agent(self, agent_id: str) -> Agent:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise ProcessingError(
                message=f"Agent not found: {agent_id}",
                details={"source": "agent_orchestrator", "operation": "dispatch", "agent_id": agent_id},
            )
        return agent

    async def enqueue(self, agent_id: str, task: str, context: dict[str, Any] | None = None) -> AgentTask | None:
        """Persist a task for later dispatch. Unknown agents are logged and skipped."""
        agent = self._agents.get(agent_id)
        if agent is None:
            logger.warning(f"Agent not registered, task not queued: {agent_id}")
            return None

        queued = await self.operations.store_agent_task(AgentTask(agent_id=agent_id, task=task, context=context or {}))
        agent.status = AgentStatus.QUEUED
        logger.info(f"Agent task queued: {agent.name}", extra={"task_id": queued.id})
        return queued

    async def dispatch(self, agent_id: str, task: str, context: dict[str, Any] | None = None) -> InvocationRecord:
        """Run ``task`` through the invoker on behalf of ``agent_id``."""
        agent = self._require_agent(agent_id)

        logger.info(f"Invoking agent: {agent.name}", extra={"task": task})
        agent.status = AgentStatus.RUNNING
        try:
            record = await self.invoker.invoke(
                InvocationRequest(
                    type="agent_task",
                    purpose=f"Agent {agent.name}: {task}",
                    context={
                        **(context or {}),
                        "agentId": agent.id,
                        "agentCapabilities": list(agent.capabilities),
                        "task": task,
                    },
                )
            )
        except Exception:
            agent.status = AgentStatus.ERROR
            raise
        finally:
            agent.last_run = utc_now()

        agent.status = AgentStatus.COMPLETED
        return record

    async def dispatch_pending(self) -> list[InvocationRecord]:
        """Dispatch every stored task not yet dispatched, oldest first.

        A task is marked dispatched only once its invocation succeeds. A failed
        task is logged and stays pending for the next batch.
        """
        records = []
        for queued in await self.operations.pending_agent_tasks():
            if queued.agent_id not in self._agents:
                logger.warning(f"Skipping task for unregistered agent: {queued.agent_id}")
                continue
            try:
                record = await self.dispatch(queued.agent_id, queued.task, queued.context)
            except Exception as e:
                logger.error(
                    f"Agent task failed, left pending: {queued.id}",
                    agent_id=queued.agent_id,
                    error=str(e),
                    exc_info=True,
                )
                continue
            await self.operations.mark_agent_task_dispatched(queued.id)
            records.append(record)
        return records
