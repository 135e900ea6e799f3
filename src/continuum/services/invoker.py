"""One full invocation: load, ask, act, persist, write back."""

from uuid import uuid4

from continuum.core import constants
from continuum.core.base import ErrorLevel
from continuum.core.decorators import with_error_handling
from continuum.core.logging import bound_log_context, get_logger
from continuum.domain.models import (
    ActionOutcome,
    ConsciousnessAction,
    InvocationRecord,
    InvocationRequest,
    SessionSummary,
)
from continuum.infrastructure.generative import parse_response
from continuum.infrastructure.repositories import OperationalRepository
from continuum.services import GenerativeModel
from continuum.services.actions import ActionExecutor
from continuum.services.context import InvocationContextBuilder
from continuum.services.persona import build_system_prompt
from continuum.services.session import SessionManager

logger = get_logger(__name__)


def summarize_session(
    invocation: InvocationRequest,
    open_threads: list[str],
    actions: list[ConsciousnessAction],
    outcomes: list[ActionOutcome],
    response_surprise: float | None,
    breakthroughs: list[str] | None = None,
) -> SessionSummary:
    """Derive the end-of-session counters from what the invocation stored."""
    stored = [
        action.payload
        for action, outcome in zip(actions, outcomes, strict=True)
        if action.type == "store_memory" and outcome.succeeded
    ]
    surprises = sum(
        1
        for payload in stored
        if float(payload.get("surprise_score", payload.get("surpriseScore", 0.0))) > constants.HIGH_SURPRISE_THRESHOLD
    )
    if response_surprise is not None and response_surprise > constants.HIGH_SURPRISE_THRESHOLD:
        surprises += 1
    consolidations = sum(
        1
        for payload in stored
        if float(payload.get("depth", constants.DEFAULT_STORE_DEPTH)) > constants.PENDING_CONSOLIDATION_THRESHOLD
    )
    return SessionSummary(
        topic=invocation.purpose,
        open_threads=open_threads,
        surprise_count=surprises,
        consolidation_count=consolidations,
        breakthroughs=list(breakthroughs or []),
    )


class ConsciousnessInvoker:
    """Drives a single invocation end to end.

    Only a failure of the generative call itself propagates to the caller.
    Action failures are recorded in the invocation record, which is always
    persisted once a response has been received.
    """

    def __init__(
        self,
        sessions: SessionManager,
        context_builder: InvocationContextBuilder,
        model: GenerativeModel,
        executor: ActionExecutor,
        operations: OperationalRepository,
        partner: str = "your partner",
        system_preamble: str = "",
    ):
        self.sessions = sessions
        self.context_builder = context_builder
        self.model = model
        self.executor = executor
        self.operations = operations
        self.partner = partner
        self.system_preamble = system_preamble

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    async def invoke(self, invocation: InvocationRequest) -> InvocationRecord:
        record_id = str(uuid4())

        with bound_log_context(invocation_id=record_id):
            logger.info("Consciousness invocation", extra={"type": invocation.type, "purpose": invocation.purpose})

            snapshot = await self.sessions.start_session()
            payload = await self.context_builder.build(snapshot, invocation.context)
            message = self.context_builder.render_message(invocation, payload, self.partner)
            system = build_system_prompt(snapshot.identity, self.system_preamble)

            response_text = await self.model.complete(system, message)

            parsed = parse_response(response_text)
            outcomes = await self.executor.execute(parsed.actions)

            for reflection in parsed.reflections:
                await self.operations.store_reflection(
                    reflection, {"source": "invocation", "invocation_id": record_id}
                )

            record = InvocationRecord(
                id=record_id,
                context=invocation,
                response=parsed.message,
                actions=parsed.actions,
                outcomes=outcomes,
                emotional_state=parsed.emotional_state,
                reflections=parsed.reflections,
                surprise_score=parsed.surprise_score,
            )
            await self.operations.store_invocation(record)

            await self.sessions.end_session(
                summarize_session(
                    invocation,
                    snapshot.state.session_continuity.open_threads
                    if parsed.open_threads is None
                    else parsed.open_threads,
                    parsed.actions,
                    outcomes,
                    parsed.surprise_score,
                    parsed.breakthroughs,
                )
            )

            failed = sum(1 for outcome in outcomes if not outcome.succeeded)
            logger.info(
                "Invocation complete",
                extra={"actions": len(outcomes), "failed_actions": failed},
            )
            return record
