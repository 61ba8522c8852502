"""Habit domain models and enums."""

import re
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Annotated, Self

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from habit_coach.core.config import Constants


REMINDER_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
MIN_WEEKDAY = 1  # Sunday
MAX_WEEKDAY = 7  # Saturday


class HabitCategory(StrEnum):
    """Habit cadence. Drives reminder recurrence."""

    DAILY = "daily"
    WEEKLY = "weekly"


def validate_name(v: str) -> str:
    """Validate habit name length."""
    if not Constants.HABIT_NAME_MIN_LENGTH <= len(v) <= Constants.HABIT_NAME_MAX_LENGTH:
        msg = (
            f"Name must be between {Constants.HABIT_NAME_MIN_LENGTH} "
            f"and {Constants.HABIT_NAME_MAX_LENGTH} characters"
        )
        raise ValueError(msg)
    return v


def validate_description(v: str) -> str:
    """Validate habit description length."""
    if len(v) > Constants.HABIT_DESCRIPTION_MAX_LENGTH:
        msg = f"Description must be at most {Constants.HABIT_DESCRIPTION_MAX_LENGTH} characters"
        raise ValueError(msg)
    return v


def validate_reminder_time(v: str) -> str:
    """Validate reminder time is HH:MM on a 24h clock."""
    if not REMINDER_TIME_PATTERN.match(v):
        msg = "Reminder time must be HH:MM (24h), e.g. 09:00"
        raise ValueError(msg)
    return v


def validate_weekday(v: int) -> int:
    """Validate weekday is 1 (Sunday) .. 7 (Saturday)."""
    if not MIN_WEEKDAY <= v <= MAX_WEEKDAY:
        msg = "Reminder weekday must be between 1 (Sunday) and 7 (Saturday)"
        raise ValueError(msg)
    return v


HabitName = Annotated[str, AfterValidator(validate_name)]
HabitDescription = Annotated[str, AfterValidator(validate_description)]
ReminderTime = Annotated[str, AfterValidator(validate_reminder_time)]
ReminderWeekday = Annotated[int, AfterValidator(validate_weekday)]


def parse_reminder_time(value: str) -> tuple[int, int]:
    """Split an HH:MM reminder time into (hour, minute)."""
    hour, minute = value.split(":")
    return int(hour), int(minute)


class Habit(BaseModel):
    """Habit record as persisted in an owner's collection.

    ``streak`` is a cached value of the streak engine and ``completed_dates`` is kept
    unique and sorted ascending.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Opaque habit id assigned at creation")
    owner_id: str = Field(..., description="Owning user id")
    name: HabitName = Field(..., description="Habit name (e.g., 'Drink Water')")
    description: HabitDescription = Field(default="", description="Optional habit description")
    category: HabitCategory = Field(default=HabitCategory.DAILY, description="Habit cadence")
    completed_dates: list[date] = Field(default_factory=list, description="Calendar dates the habit was completed")
    streak: int = Field(default=0, ge=0, description="Derived current streak")
    reminder_enabled: bool = Field(default=False, description="Whether a recurring reminder is wanted")
    reminder_time: ReminderTime | None = Field(default=None, description="Reminder time as HH:MM")
    reminder_weekday: ReminderWeekday | None = Field(
        default=None, description="Weekly reminder day, 1=Sunday .. 7=Saturday"
    )
    notification_id: str | None = Field(default=None, description="Handle of the live reminder trigger")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Creation timestamp")

    @field_validator("completed_dates")
    @classmethod
    def normalize_completed_dates(cls, v: list[date]) -> list[date]:
        """Drop duplicate dates and sort ascending."""
        return sorted(set(v))

    @model_validator(mode="after")
    def check_reminder_fields(self) -> Self:
        """Enforce reminder field requirements and clear fields that do not apply."""
        if self.category == HabitCategory.DAILY:
            self.reminder_weekday = None

        if self.reminder_enabled:
            if self.reminder_time is None:
                msg = "Reminder time is required when the reminder is enabled"
                raise ValueError(msg)
            if self.category == HabitCategory.WEEKLY and self.reminder_weekday is None:
                msg = "Reminder weekday is required for weekly reminders"
                raise ValueError(msg)
        else:
            self.notification_id = None

        return self

    def to_record(self) -> dict:
        """Serialize for blob storage."""
        return self.model_dump(mode="json", by_alias=True)
