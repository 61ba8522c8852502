"""Reminder trigger backend built on APScheduler cron jobs."""

import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.base import STATE_STOPPED
from apscheduler.triggers.cron import CronTrigger

from habit_coach.core.config import settings
from habit_coach.core.errors import SchedulerUnavailableError
from habit_coach.domain.reminder import ReminderContent, ReminderTrigger


logger = logging.getLogger(__name__)

REMINDER_JOB_PREFIX = "reminder:"

ReminderSender = Callable[[ReminderContent], Awaitable[None]]


@runtime_checkable
class NotificationBackend(Protocol):
    """Recurring-trigger scheduler the reminder service delegates to."""

    async def get_permission(self) -> bool:
        """Current permission state, without prompting."""
        ...

    async def request_permission(self) -> bool:
        """Ask for permission. Denial returns False rather than raising."""
        ...

    async def schedule(self, content: ReminderContent, trigger: ReminderTrigger) -> str:
        """Register a recurring trigger and return its identifier."""
        ...

    async def cancel(self, notification_id: str) -> None:
        """Cancel a trigger. Unknown identifiers are ignored."""
        ...

    async def cancel_all(self) -> None:
        """Cancel every trigger owned by the app."""
        ...

    def list_ids(self) -> list[str]:
        """Identifiers of all live triggers."""
        ...


async def log_reminder(content: ReminderContent) -> None:
    """Default delivery: record the reminder in the application log."""
    logger.info("Reminder fired", extra={"habit_id": content.habit_id, "title": content.title, "body": content.body})


def to_cron_day_of_week(weekday: int) -> int:
    """Convert 1=Sunday .. 7=Saturday to APScheduler's 0=Monday .. 6=Sunday."""
    return (weekday - 2) % 7


def build_cron_trigger(trigger: ReminderTrigger, timezone: str | None = None) -> CronTrigger:
    """Translate a reminder trigger into an APScheduler CronTrigger."""
    if trigger.weekday is None:
        return CronTrigger(hour=trigger.hour, minute=trigger.minute, timezone=timezone)
    return CronTrigger(
        day_of_week=to_cron_day_of_week(trigger.weekday),
        hour=trigger.hour,
        minute=trigger.minute,
        timezone=timezone,
    )


class ApschedulerNotificationBackend:
    """NotificationBackend that fires reminders from an AsyncIOScheduler."""

    def __init__(
        self,
        scheduler: AsyncIOScheduler | None = None,
        *,
        sender: ReminderSender | None = None,
        permission_granted: bool | None = None,
        timezone: str | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            scheduler: Scheduler to register jobs on (a new one is created if omitted)
            sender: Coroutine that delivers a fired reminder (defaults to logging it)
            permission_granted: Platform permission (defaults to settings.notifications_enabled)
            timezone: IANA timezone for triggers (defaults to settings.reminder_timezone)
        """
        self._scheduler = scheduler or AsyncIOScheduler()
        self._sender = sender or log_reminder
        self._permission_granted = (
            settings.notifications_enabled if permission_granted is None else permission_granted
        )
        self._timezone = timezone or settings.reminder_timezone

    @property
    def scheduler(self) -> AsyncIOScheduler:
        """Underlying APScheduler instance."""
        return self._scheduler

    def start(self) -> None:
        """Start the scheduler. Must be called from a running event loop."""
        if self._scheduler.state == STATE_STOPPED:
            self._scheduler.start()
            logger.info("Reminder scheduler started")

    def shutdown(self) -> None:
        """Stop the scheduler without waiting for running reminders."""
        if self._scheduler.state != STATE_STOPPED:
            self._scheduler.shutdown(wait=False)
            logger.info("Reminder scheduler stopped")

    async def get_permission(self) -> bool:
        return self._permission_granted

    async def request_permission(self) -> bool:
        if not self._permission_granted:
            logger.info("Notification permission not available on this platform")
        return self._permission_granted

    async def _deliver(self, content: ReminderContent) -> None:
        try:
            await self._sender(content)
        except Exception as e:
            logger.error("reminder_delivery_failed", extra={"habit_id": content.habit_id, "error": str(e)})

    async def schedule(self, content: ReminderContent, trigger: ReminderTrigger) -> str:
        job_id = f"{REMINDER_JOB_PREFIX}{uuid.uuid4().hex}"
        try:
            cron = build_cron_trigger(trigger, self._timezone)
            self._scheduler.add_job(
                self._deliver,
                trigger=cron,
                args=[content],
                id=job_id,
                name=content.title,
                replace_existing=True,
            )
        except (ValueError, LookupError) as e:
            logger.error("reminder_schedule_failed", extra={"habit_id": content.habit_id, "error": str(e)})
            raise SchedulerUnavailableError(f"Could not schedule reminder: {e}") from e

        logger.info(
            "Scheduled reminder",
            extra={"habit_id": content.habit_id, "notification_id": job_id, "schedule": trigger.describe()},
        )
        return job_id

    async def cancel(self, notification_id: str) -> None:
        try:
            self._scheduler.remove_job(notification_id)
        except JobLookupError:
            logger.debug("Reminder %s already gone", notification_id)
            return
        logger.info("Cancelled reminder", extra={"notification_id": notification_id})

    async def cancel_all(self) -> None:
        ids = self.list_ids()
        for job_id in ids:
            try:
                self._scheduler.remove_job(job_id)
            except JobLookupError:
                continue
        logger.info("Cancelled all reminders", extra={"count": len(ids)})

    def list_ids(self) -> list[str]:
        return [job.id for job in self._scheduler.get_jobs() if job.id.startswith(REMINDER_JOB_PREFIX)]
