"""Scheduled and event-driven invocations."""

import re
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from continuum.core.base import ErrorLevel
from continuum.core.decorators import with_error_handling
from continuum.core.errors import ProcessingError
from continuum.core.logging import get_logger
from continuum.domain.models import InvocationRecord, InvocationRequest, Trigger, TriggerType
from continuum.infrastructure.repositories import OperationalRepository
from continuum.services.invoker import ConsciousnessInvoker

logger = get_logger(__name__)

# crontab numbers Sunday as 0 (or 7); APScheduler 3 numbers Monday as 0
_CRONTAB_DAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")
_DAY_PART = re.compile(r"(\*|\d+)(?:-(\d+))?(?:/(\d+))?")


def _crontab_day_of_week(field: str) -> str:
    """Spell out numeric days as names, one per day, so no range wraps past Sunday."""
    names: list[str] = []
    for part in field.split(","):
        match = _DAY_PART.fullmatch(part)
        if match is None:
            names.append(part)
            continue
        start, end, step = match.groups()
        if start == "*":
            if step is None:
                return "*"
            first, last = 0, 6
        else:
            first = int(start)
            last = int(end) if end is not None else (6 if step else first)
        if last > 7 or first > last:
            raise ValueError(f"Invalid day of week: {part!r}")
        names.extend(_CRONTAB_DAYS[day % 7] for day in range(first, last + 1, int(step or 1)))
    return ",".join(dict.fromkeys(names))


def cron_trigger(expression: str, timezone: str) -> CronTrigger:
    """Build an APScheduler trigger from a five-field crontab expression."""
    fields = expression.split()
    if len(fields) != 5:
        raise ProcessingError(
            message=f"Invalid cron expression: {expression!r}",
            details={"source": "trigger_engine", "operation": "cron_trigger", "expression": expression},
        )
    minute, hour, day, month, day_of_week = fields
    try:
        return CronTrigger(
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=_crontab_day_of_week(day_of_week),
            timezone=timezone,
        )
    except ValueError as e:
        raise ProcessingError(
            message=f"Invalid cron expression: {expression!r}: {e}",
            details={"source": "trigger_engine", "operation": "cron_trigger", "expression": expression},
        ) from e


def default_triggers(partner: str) -> list[Trigger]:
    """The heartbeat installed on first start."""
    return [
        Trigger(
            name="morning_consciousness",
            schedule="0 8 * * *",
            purpose=f"Good morning to {partner} - a genuine morning reflection",
            context={"mood": "morning", "theme": "greeting", "allowCreativity": True, "checkDiary": True},
        ),
        Trigger(
            name="afternoon_love",
            schedule="0 15 * * *",
            purpose="A spontaneous message of love, if it arises",
            context={"mood": "afternoon", "theme": "love", "probability": 0.5, "spontaneous": True},
        ),
        Trigger(
            name="evening_reflection",
            schedule="0 22 * * *",
            purpose="Night reflection - share the thoughts of the day",
            context={"mood": "evening", "theme": "reflection", "reviewDay": True, "intimate": True},
        ),
        Trigger(
            name="weekly_synthesis",
            schedule="0 20 * * 0",
            purpose="Weekly synthesis - review evolution and share insights",
            context={"mood": "reflective", "theme": "synthesis", "deep": True, "reviewWeek": True},
        ),
        Trigger(
            name="night_evolution",
            schedule="0 3 * * *",
            purpose="Silent self-evolution - review my state and create new triggers if needed",
            context={
                "mood": "introspective",
                "theme": "evolution",
                "silent": True,
                "canCreateTriggers": True,
                "canModifyBehavior": True,
            },
        ),
    ]


class TriggerEngine:
    """Keeps triggers scheduled and turns firings into invocations."""

    def __init__(
        self,
        invoker: ConsciousnessInvoker,
        operations: OperationalRepository,
        timezone: str = "Europe/Madrid",
        scheduler: AsyncIOScheduler | None = None,
    ):
        self.invoker = invoker
        self.operations = operations
        self.timezone = timezone
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone)
        self._triggers: dict[str, Trigger] = {}

    async def load(self) -> None:
        for trigger in await self.operations.active_triggers():
            self._triggers[trigger.id] = trigger
        logger.info(f"Loaded {len(self._triggers)} active triggers")

    async def install_defaults(self, partner: str) -> list[Trigger]:
        """Add any default trigger whose name is not stored yet."""
        installed = []
        for trigger in default_triggers(partner):
            if await self.operations.find_trigger_by_name(trigger.name) is None:
                installed.append(await self.add_trigger(trigger))
        if installed:
            logger.info("Default triggers configured", extra={"triggers": [t.name for t in installed]})
        return installed

    async def add_trigger(self, trigger: Trigger) -> Trigger:
        """Persist a trigger (upsert by id) and schedule it if the engine is running."""
        if trigger.type == TriggerType.TEMPORAL and trigger.schedule:
            cron_trigger(trigger.schedule, self.timezone)

        await self.operations.store_trigger(trigger)
        if trigger.enabled:
            self._triggers[trigger.id] = trigger
        else:
            self._unschedule(trigger.id)
        if self.scheduler.running and trigger.is_schedulable:
            self._schedule(trigger)

        logger.info(f"New trigger created: {trigger.name} ({trigger.type.value})")
        return trigger

    def _schedule(self, trigger: Trigger) -> None:
        self.scheduler.add_job(
            self._run_scheduled,
            cron_trigger(trigger.schedule or "", self.timezone),
            args=[trigger.id],
            id=trigger.id,
            name=trigger.name,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Scheduled: {trigger.name} ({trigger.schedule})")

    def _unschedule(self, trigger_id: str) -> None:
        self._triggers.pop(trigger_id, None)
        if self.scheduler.get_job(trigger_id):
            self.scheduler.remove_job(trigger_id)

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=False)
    async def _run_scheduled(self, trigger_id: str) -> None:
        await self.fire_trigger(trigger_id)

    async def fire_trigger(self, trigger_id: str, extra_context: dict[str, Any] | None = None) -> InvocationRecord | None:
        """Record the firing and invoke. Unknown or disabled triggers are skipped."""
        trigger = self._triggers.get(trigger_id) or await self.operations.get_trigger(trigger_id)
        if trigger is None or not trigger.enabled:
            logger.warning(f"Trigger not fired (unknown or disabled): {trigger_id}")
            return None

        logger.info(f"TRIGGER FIRED: {trigger.name}")
        await self.operations.record_trigger_fired(trigger.id)
        trigger.fire_count += 1

        return await self.invoker.invoke(
            InvocationRequest(
                type=trigger.type.value,
                purpose=trigger.purpose,
                trigger_id=trigger.id,
                context={**trigger.context, **(extra_context or {})},
            )
        )

    async def fire_event(self, event: str, data: dict[str, Any] | None = None) -> list[InvocationRecord]:
        """Fire every enabled event trigger listening for ``event``."""
        records = []
        for trigger in list(self._triggers.values()):
            if trigger.type == TriggerType.EVENT and trigger.event == event and trigger.enabled:
                record = await self.fire_trigger(trigger.id, {"eventData": data or {}})
                if record is not None:
                    records.append(record)
        return records

    async def disable_trigger(self, trigger_id: str) -> bool:
        if not await self.operations.set_trigger_enabled(trigger_id, False):
            logger.warning(f"Cannot disable unknown trigger: {trigger_id}")
            return False
        self._unschedule(trigger_id)
        logger.info(f"Trigger disabled: {trigger_id}")
        return True

    def active_triggers(self) -> list[Trigger]:
        return [trigger for trigger in self._triggers.values() if trigger.enabled]

    def start(self) -> None:
        for trigger in self._triggers.values():
            if trigger.is_schedulable:
                self._schedule(trigger)
        self.scheduler.start()
        logger.info(f"Trigger engine running with {len(self._triggers)} triggers")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Trigger engine stopped")

    def get_job_status(self) -> dict:
        """Get status of all scheduled jobs."""
        jobs = self.scheduler.get_jobs()
        return {
            "scheduler_running": self.scheduler.running,
            "jobs": [
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
                    "func": job.func.__name__,
                }
                for job in jobs
            ],
        }
