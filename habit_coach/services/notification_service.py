"""Reminder scheduling: permission handling and trigger lifecycle for habits."""

import logging

from pydantic import ValidationError as PydanticValidationError

from habit_coach.core.config import Constants
from habit_coach.core.errors import HabitValidationError, SchedulerUnavailableError
from habit_coach.core.logging import span
from habit_coach.core.scheduler import NotificationBackend
from habit_coach.domain.habit import Habit, HabitCategory, parse_reminder_time
from habit_coach.domain.reminder import ReminderContent, ReminderTrigger


logger = logging.getLogger(__name__)


def reminder_text(habit: Habit) -> tuple[str, str]:
    """Title and body of a habit's reminder notification."""
    return f"Time for {habit.name}!", habit.description or Constants.REMINDER_DEFAULT_BODY


class ReminderScheduler:
    """Turns habit reminder settings into recurring triggers.

    The scheduler never reads or writes habit storage. Callers persist the returned
    identifier and must cancel it before scheduling a replacement.
    """

    def __init__(self, backend: NotificationBackend) -> None:
        self._backend = backend

    async def request_permission(self) -> bool:
        """Ensure notification permission, prompting only if not yet granted.

        Returns:
            True if reminders can be scheduled. Denial or an unavailable platform
            yields False and is only logged.
        """
        try:
            if await self._backend.get_permission():
                return True
            granted = await self._backend.request_permission()
        except SchedulerUnavailableError as e:
            logger.warning("notification_permission_unavailable", extra={"error": str(e)})
            return False

        if not granted:
            logger.info("Notification permission not granted")
        return granted

    async def schedule(
        self,
        habit_id: str,
        title: str,
        body: str,
        hour: int,
        minute: int,
        category: HabitCategory | str,
        weekday: int | None = None,
    ) -> str | None:
        """Schedule a recurring reminder.

        Args:
            habit_id: Habit the reminder belongs to
            title: Notification title
            body: Notification body
            hour: Hour of day (0-23)
            minute: Minute (0-59)
            category: daily fires every day, weekly fires every ``weekday``
            weekday: 1=Sunday .. 7=Saturday, required for weekly reminders

        Returns:
            Trigger identifier, or None when permission was not granted

        Raises:
            HabitValidationError: If the time, category or weekday is invalid
            SchedulerUnavailableError: If the trigger backend rejects the trigger
        """
        with span("notification_service.schedule"):
            try:
                trigger = ReminderTrigger(category=category, hour=hour, minute=minute, weekday=weekday)
            except PydanticValidationError as e:
                raise HabitValidationError(f"Invalid reminder schedule: {e.errors()[0]['msg']}") from e

            if not await self.request_permission():
                logger.info("Skipping reminder without permission", extra={"habit_id": habit_id})
                return None

            content = ReminderContent(habit_id=habit_id, title=title, body=body)
            return await self._backend.schedule(content, trigger)

    async def schedule_for_habit(self, habit: Habit) -> str | None:
        """Schedule the reminder described by a habit's reminder fields.

        Returns None when the habit has no reminder enabled or permission is denied.
        """
        if not habit.reminder_enabled or habit.reminder_time is None:
            return None

        hour, minute = parse_reminder_time(habit.reminder_time)
        title, body = reminder_text(habit)
        return await self.schedule(
            habit.id,
            title,
            body,
            hour,
            minute,
            habit.category,
            habit.reminder_weekday,
        )

    async def cancel(self, notification_id: str | None) -> None:
        """Cancel a trigger. Absent or unknown identifiers are a no-op."""
        if not notification_id:
            return
        with span("notification_service.cancel"):
            await self._backend.cancel(notification_id)

    async def cancel_all(self) -> None:
        """Cancel every reminder owned by the app."""
        with span("notification_service.cancel_all"):
            await self._backend.cancel_all()
