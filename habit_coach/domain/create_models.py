"""Pydantic models for creating habit records."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from habit_coach.domain.habit import (
    HabitCategory,
    HabitDescription,
    HabitName,
    ReminderTime,
    ReminderWeekday,
)


class HabitCreate(BaseModel):
    """User-supplied fields for a new habit.

    System fields (id, created_at, streak, completed_dates, notification_id) are not
    accepted here and are silently ignored if present in the payload.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: HabitName = Field(..., description="Habit name (e.g., 'Drink Water')")
    description: HabitDescription = Field(default="", description="Optional habit description")
    category: HabitCategory = Field(default=HabitCategory.DAILY, description="Habit cadence")
    reminder_enabled: bool = Field(default=False, description="Whether a recurring reminder is wanted")
    reminder_time: ReminderTime | None = Field(default=None, description="Reminder time as HH:MM")
    reminder_weekday: ReminderWeekday | None = Field(
        default=None, description="Weekly reminder day, 1=Sunday .. 7=Saturday"
    )
