import asyncio

from continuum.core.logging import get_logger
from continuum.domain.models import DailyLogEntry, SessionSnapshot, SessionSummary
from continuum.domain.models.utils import utc_now
from continuum.infrastructure.repositories import LedgerRepository, MemoryRepository

logger = get_logger(__name__)


class SessionManager:
    """Loads the snapshot an invocation works from and writes continuity back.

    The snapshot is returned to the caller and never kept here.
    """

    def __init__(
        self,
        memories: MemoryRepository,
        ledger: LedgerRepository,
        recent_limit: int = 10,
        high_priority_limit: int = 5,
    ):
        self.memories = memories
        self.ledger = ledger
        self.recent_limit = recent_limit
        self.high_priority_limit = high_priority_limit

    async def start_session(self) -> SessionSnapshot:
        """Gather the five independent reads, then count the invocation.

        The counter is bumped only after every read has resolved, so the
        snapshot never observes its own increment.
        """
        state, identity, roadmap, recent, high_priority = await asyncio.gather(
            self.ledger.get_state(),
            self.ledger.get_identity(),
            self.ledger.get_roadmap(),
            self.memories.recent(self.recent_limit),
            self.memories.high_priority(self.high_priority_limit),
        )

        await self.ledger.increment_counter("total_invocations")

        logger.info(
            "Session started",
            extra={
                "invocation_number": state.health_metrics.total_invocations + 1,
                "recent_memories": len(recent),
                "high_priority_memories": len(high_priority),
            },
        )
        return SessionSnapshot(
            state=state,
            identity=identity,
            roadmap=roadmap,
            recent_memories=recent,
            high_priority_memories=high_priority,
        )

    async def end_session(self, summary: SessionSummary) -> None:
        """Replace session continuity wholesale and append one daily log entry.

        Unresolved questions are always reset to empty.
        """
        now = utc_now()
        await self.ledger.update_state(
            {
                "session_continuity": {
                    "last_topic": summary.topic,
                    "open_threads": list(summary.open_threads),
                    "unresolved_questions": [],
                    "last_session_end": now,
                }
            }
        )
        await self.ledger.add_daily_log(
            DailyLogEntry(
                date=now,
                summary=summary.log_summary,
                surprises=summary.surprise_count,
                consolidations=summary.consolidation_count,
                breakthroughs=list(summary.breakthroughs),
            )
        )
        logger.info("Session ended", extra={"topic": summary.topic})
