"""Habit store: owner-scoped CRUD and completion tracking over blob storage.

Each owner's habits live in a single blob that is read, modified and written back
whole. All mutations for one owner run under that owner's lock so concurrent
read-modify-write cycles never interleave; reads take no lock.
"""

import logging
import time
import uuid
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from habit_coach.core.errors import HabitNotFoundError, HabitValidationError, StorageUnavailableError
from habit_coach.core.logging import log_with_owner_context, span
from habit_coach.core.owner_lock import OwnerLockRegistry
from habit_coach.core.storage import BlobStore, habits_key, logs_key, validate_owner_id
from habit_coach.domain.create_models import HabitCreate
from habit_coach.domain.habit import Habit
from habit_coach.domain.log import CompletionLog
from habit_coach.domain.update_models import HabitUpdate
from habit_coach.services.streak_service import compute_streak, to_date


logger = logging.getLogger(__name__)

_habits_adapter = TypeAdapter(list[Habit])
_logs_adapter = TypeAdapter(list[CompletionLog])


def validation_message(error: PydanticValidationError) -> str:
    """Flatten pydantic errors into one readable message."""
    parts = []
    for err in error.errors():
        location = ".".join(str(loc) for loc in err["loc"])
        message = err["msg"].removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def _find_index(habits: list[Habit], habit_id: str) -> int:
    """Return the position of habit_id in the collection."""
    for index, habit in enumerate(habits):
        if habit.id == habit_id:
            return index
    raise HabitNotFoundError(habit_id)


class HabitStore:
    """Durable, owner-scoped collection of habits."""

    def __init__(
        self,
        blob_store: BlobStore,
        *,
        clock: Callable[[], date] | None = None,
        locks: OwnerLockRegistry | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            blob_store: Persistence medium
            clock: Returns "today" for streak evaluation (defaults to date.today)
            locks: Per-owner lock registry (a private one is created if omitted)
        """
        self._blobs = blob_store
        self._clock = clock or date.today
        self._locks = locks or OwnerLockRegistry()

    def today(self) -> date:
        """Reference day used for streak evaluation."""
        return self._clock()

    async def _load(self, owner_id: str) -> list[Habit]:
        key = habits_key(owner_id)
        raw = await self._blobs.get(key)
        if raw is None:
            return []
        try:
            return _habits_adapter.validate_json(raw)
        except PydanticValidationError as e:
            logger.error("habit_blob_corrupt", extra={"owner_id": owner_id, "error": str(e)})
            raise StorageUnavailableError(f"Stored habits for {owner_id} could not be decoded") from e

    async def _save(self, owner_id: str, habits: list[Habit]) -> None:
        await self._blobs.set(habits_key(owner_id), _habits_adapter.dump_json(habits, by_alias=True))

    def _with_current_streak(self, habit: Habit) -> Habit:
        return habit.model_copy(update={"streak": compute_streak(habit.completed_dates, self.today())})

    async def list_habits(self, owner_id: str) -> list[Habit]:
        """Return all habits for the owner in insertion order.

        Raises:
            InvalidOwnerError: If owner_id is empty
            StorageUnavailableError: If the blob store fails
        """
        with span("habit_service.list_habits"):
            validate_owner_id(owner_id)
            habits = await self._load(owner_id)
            return [self._with_current_streak(habit) for habit in habits]

    async def get_habit(self, owner_id: str, habit_id: str) -> Habit:
        """Return a single habit.

        Raises:
            HabitNotFoundError: If the habit does not exist for this owner
        """
        with span("habit_service.get_habit"):
            validate_owner_id(owner_id)
            habits = await self._load(owner_id)
            return self._with_current_streak(habits[_find_index(habits, habit_id)])

    async def create_habit(self, owner_id: str, data: HabitCreate | dict[str, Any]) -> Habit:
        """Validate and persist a new habit.

        Args:
            owner_id: Owning user
            data: User-supplied fields

        Returns:
            The created habit with id, created_at, streak=0 and no completions

        Raises:
            HabitValidationError: If the fields are invalid
        """
        with span("habit_service.create_habit"):
            validate_owner_id(owner_id)
            try:
                payload = data if isinstance(data, HabitCreate) else HabitCreate.model_validate(data)
                habit = Habit(
                    id=uuid.uuid4().hex,
                    owner_id=owner_id,
                    created_at=datetime.now(UTC),
                    **payload.model_dump(),
                )
            except PydanticValidationError as e:
                raise HabitValidationError(validation_message(e)) from e

            async with self._locks.hold(owner_id):
                habits = await self._load(owner_id)
                habits.append(habit)
                await self._save(owner_id, habits)

            log_with_owner_context(
                logger, "info", "Created habit", owner_id=owner_id, habit_id=habit.id, category=habit.category
            )
            return habit

    async def update_habit(self, owner_id: str, habit_id: str, changes: HabitUpdate | dict[str, Any]) -> Habit:
        """Merge the supplied fields into an existing habit.

        The streak is only recomputed when ``completed_dates`` is part of the changes;
        a caller-supplied streak is ignored.

        Raises:
            HabitNotFoundError: If the habit does not exist for this owner
            HabitValidationError: If the merged habit is invalid
        """
        with span("habit_service.update_habit"):
            validate_owner_id(owner_id)
            try:
                update = changes if isinstance(changes, HabitUpdate) else HabitUpdate.model_validate(changes)
            except PydanticValidationError as e:
                raise HabitValidationError(validation_message(e)) from e

            async with self._locks.hold(owner_id):
                habits = await self._load(owner_id)
                index = _find_index(habits, habit_id)

                merged = habits[index].model_dump() | update.changes()
                try:
                    updated = Habit.model_validate(merged)
                except PydanticValidationError as e:
                    raise HabitValidationError(validation_message(e)) from e

                if "completed_dates" in update.model_fields_set:
                    streak = compute_streak(updated.completed_dates, self.today())
                    updated = updated.model_copy(update={"streak": streak})

                habits[index] = updated
                await self._save(owner_id, habits)

            log_with_owner_context(
                logger,
                "info",
                "Updated habit",
                owner_id=owner_id,
                habit_id=habit_id,
                fields=sorted(update.model_fields_set),
            )
            return updated

    async def set_notification_id(self, owner_id: str, habit_id: str, notification_id: str | None) -> Habit:
        """Persist the handle of the habit's live reminder trigger."""
        return await self.update_habit(owner_id, habit_id, HabitUpdate(notification_id=notification_id))

    async def delete_habit(self, owner_id: str, habit_id: str) -> None:
        """Remove a habit from the owner's collection.

        Raises:
            HabitNotFoundError: If the habit does not exist for this owner
        """
        with span("habit_service.delete_habit"):
            validate_owner_id(owner_id)
            async with self._locks.hold(owner_id):
                habits = await self._load(owner_id)
                del habits[_find_index(habits, habit_id)]
                await self._save(owner_id, habits)

            log_with_owner_context(logger, "info", "Deleted habit", owner_id=owner_id, habit_id=habit_id)

    async def toggle_completion(self, owner_id: str, habit_id: str, day: date | str, completed: bool) -> Habit:
        """Add or remove a completion date and recompute the streak.

        Adding a present date or removing an absent one leaves the set unchanged, but
        the streak is still recomputed and the habit persisted.

        Args:
            owner_id: Owning user
            habit_id: Habit to toggle
            day: Calendar date (date or YYYY-MM-DD)
            completed: True to mark done, False to unmark

        Returns:
            The updated habit

        Raises:
            HabitNotFoundError: If the habit does not exist for this owner
            HabitValidationError: If day is not a valid calendar date
        """
        with span("habit_service.toggle_completion"):
            validate_owner_id(owner_id)
            day = to_date(day)

            async with self._locks.hold(owner_id):
                habits = await self._load(owner_id)
                index = _find_index(habits, habit_id)
                habit = habits[index]

                dates = set(habit.completed_dates)
                newly_added = completed and day not in dates
                if completed:
                    dates.add(day)
                else:
                    dates.discard(day)

                updated = habit.model_copy(
                    update={
                        "completed_dates": sorted(dates),
                        "streak": compute_streak(dates, self.today()),
                    }
                )
                habits[index] = updated
                await self._save(owner_id, habits)

                if newly_added:
                    await self._append_log(owner_id, habit_id, day)

            log_with_owner_context(
                logger,
                "info",
                "Toggled habit completion",
                owner_id=owner_id,
                habit_id=habit_id,
                day=day.isoformat(),
                completed=completed,
                streak=updated.streak,
            )
            return updated

    async def mark_completed(self, owner_id: str, habit_id: str, day: date | str) -> Habit:
        """Mark a habit done on day."""
        return await self.toggle_completion(owner_id, habit_id, day, True)

    async def unmark_completed(self, owner_id: str, habit_id: str, day: date | str) -> Habit:
        """Clear a habit's completion on day."""
        return await self.toggle_completion(owner_id, habit_id, day, False)

    async def _append_log(self, owner_id: str, habit_id: str, day: date) -> None:
        """Append to the flat completion log. Failures are logged, not raised."""
        entry = CompletionLog(habit_id=habit_id, date=day, timestamp=int(time.time() * 1000))
        try:
            logs = await self.get_completion_logs(owner_id)
            logs.append(entry)
            await self._blobs.set(logs_key(owner_id), _logs_adapter.dump_json(logs, by_alias=True))
        except StorageUnavailableError as e:
            logger.error("completion_log_failed", extra={"owner_id": owner_id, "habit_id": habit_id, "error": str(e)})

    async def get_completion_logs(self, owner_id: str) -> list[CompletionLog]:
        """Return the owner's flat completion log, oldest first."""
        validate_owner_id(owner_id)
        raw = await self._blobs.get(logs_key(owner_id))
        if raw is None:
            return []
        try:
            return _logs_adapter.validate_json(raw)
        except PydanticValidationError as e:
            raise StorageUnavailableError(f"Stored completion log for {owner_id} could not be decoded") from e

    async def clear_owner_data(self, owner_id: str) -> None:
        """Remove the owner's habits and completion log."""
        with span("habit_service.clear_owner_data"):
            validate_owner_id(owner_id)
            async with self._locks.hold(owner_id):
                await self._blobs.remove(habits_key(owner_id))
                await self._blobs.remove(logs_key(owner_id))

            log_with_owner_context(logger, "warning", "Cleared all habit data", owner_id=owner_id)
