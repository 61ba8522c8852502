"""Habit workflows that keep stored habits and reminder triggers in step.

These are the only sanctioned paths that touch a habit's reminder trigger:

- create: persist, then schedule and store the trigger id
- edit: persist, cancel the old trigger, schedule the new one, store its id
- delete: cancel the trigger, then delete
- reset: clear the owner's data and cancel every trigger
"""

import logging
from datetime import date
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from habit_coach.core.errors import HabitValidationError, SchedulerUnavailableError, StorageUnavailableError
from habit_coach.core.logging import log_with_owner_context, span
from habit_coach.domain.create_models import HabitCreate
from habit_coach.domain.habit import Habit
from habit_coach.domain.update_models import HabitUpdate
from habit_coach.services.habit_service import HabitStore, validation_message
from habit_coach.services.notification_service import ReminderScheduler


logger = logging.getLogger(__name__)


class HabitWorkflow:
    """Composes the habit store and the reminder scheduler."""

    def __init__(self, store: HabitStore, reminders: ReminderScheduler) -> None:
        self.store = store
        self.reminders = reminders

    async def _schedule(self, owner_id: str, habit: Habit) -> str | None:
        """Schedule the habit's reminder. Backend failures leave the habit without one."""
        try:
            return await self.reminders.schedule_for_habit(habit)
        except SchedulerUnavailableError as e:
            log_with_owner_context(
                logger, "warning", "Reminder not scheduled", owner_id=owner_id, habit_id=habit.id, error=str(e)
            )
            return None

    async def _store_notification_id(self, owner_id: str, habit: Habit, notification_id: str | None) -> Habit:
        """Persist a freshly created trigger id, cancelling the trigger if the write fails."""
        try:
            return await self.store.set_notification_id(owner_id, habit.id, notification_id)
        except StorageUnavailableError:
            await self.reminders.cancel(notification_id)
            raise

    async def list_habits(self, owner_id: str) -> list[Habit]:
        """Return the owner's habits."""
        return await self.store.list_habits(owner_id)

    async def create_habit(self, owner_id: str, data: HabitCreate | dict[str, Any]) -> Habit:
        """Create a habit and, if its reminder is enabled, schedule it.

        Returns:
            The persisted habit, with ``notification_id`` set when a trigger was created
        """
        with span("workflow.create_habit"):
            habit = await self.store.create_habit(owner_id, data)
            if not habit.reminder_enabled:
                return habit

            notification_id = await self._schedule(owner_id, habit)
            if notification_id is None:
                return habit
            return await self._store_notification_id(owner_id, habit, notification_id)

    async def edit_habit(self, owner_id: str, habit_id: str, changes: HabitUpdate | dict[str, Any]) -> Habit:
        """Apply an edit and rebuild the reminder when reminder-related fields change.

        The previous trigger is always cancelled before a replacement is scheduled, so
        at most one trigger is live for the habit afterwards.

        Raises:
            HabitNotFoundError: If the habit does not exist
            HabitValidationError: If the edit is invalid (nothing is changed)
            SchedulerUnavailableError: If the old trigger could not be cancelled; the
                field edit is kept and no replacement is scheduled
        """
        with span("workflow.edit_habit"):
            try:
                update = changes if isinstance(changes, HabitUpdate) else HabitUpdate.model_validate(changes)
            except PydanticValidationError as e:
                raise HabitValidationError(validation_message(e)) from e

            # Trigger ids only change through this workflow
            supplied = update.model_fields_set - {"notification_id"}
            update = HabitUpdate.model_validate(update.model_dump(include=supplied))

            current = await self.store.get_habit(owner_id, habit_id)
            updated = await self.store.update_habit(owner_id, habit_id, update)
            if not update.touches_reminder():
                return updated

            await self.reminders.cancel(current.notification_id)

            notification_id = await self._schedule(owner_id, updated) if updated.reminder_enabled else None
            if notification_id is None and updated.notification_id is None:
                return updated

            log_with_owner_context(
                logger,
                "info",
                "Replaced habit reminder",
                owner_id=owner_id,
                habit_id=habit_id,
                old_notification_id=current.notification_id,
                new_notification_id=notification_id,
            )
            return await self._store_notification_id(owner_id, updated, notification_id)

    async def delete_habit(self, owner_id: str, habit_id: str) -> None:
        """Cancel the habit's reminder, then delete it."""
        with span("workflow.delete_habit"):
            habit = await self.store.get_habit(owner_id, habit_id)
            await self.reminders.cancel(habit.notification_id)
            await self.store.delete_habit(owner_id, habit_id)

    async def set_completion(self, owner_id: str, habit_id: str, day: date | str, completed: bool) -> Habit:
        """Mark or unmark a habit as done on day."""
        return await self.store.toggle_completion(owner_id, habit_id, day, completed)

    async def reset_all_data(self, owner_id: str) -> None:
        """Delete the owner's habits and completion log and cancel every reminder."""
        with span("workflow.reset_all_data"):
            await self.store.clear_owner_data(owner_id)
            await self.reminders.cancel_all()
