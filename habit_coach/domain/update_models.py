"""Update models for habit edits."""

from datetime import date

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from habit_coach.domain.habit import (
    HabitCategory,
    HabitDescription,
    HabitName,
    ReminderTime,
    ReminderWeekday,
)


REMINDER_FIELDS = frozenset({"reminder_enabled", "reminder_time", "reminder_weekday", "category"})
REMINDER_TEXT_FIELDS = frozenset({"name", "description"})


class HabitUpdate(BaseModel):
    """Partial update payload. Only explicitly supplied fields are merged.

    ``streak``, ``id``, ``owner_id`` and ``created_at`` are not part of the payload;
    any such keys sent by a caller are ignored.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: HabitName | None = None
    description: HabitDescription | None = None
    category: HabitCategory | None = None
    reminder_enabled: bool | None = None
    reminder_time: ReminderTime | None = None
    reminder_weekday: ReminderWeekday | None = None
    completed_dates: list[date] | None = None
    notification_id: str | None = None

    def changes(self) -> dict:
        """Return only the fields the caller supplied."""
        return self.model_dump(include=self.model_fields_set)

    def touches_reminder(self) -> bool:
        """Whether any reminder-relevant or reminder-text field was supplied."""
        return bool(self.model_fields_set & (REMINDER_FIELDS | REMINDER_TEXT_FIELDS))
