"""Reminder trigger descriptors handed to the notification backend."""

from typing import Self

from pydantic import BaseModel, Field, model_validator

from habit_coach.domain.habit import MAX_WEEKDAY, MIN_WEEKDAY, HabitCategory


class ReminderContent(BaseModel):
    """Notification payload shown when a reminder fires."""

    habit_id: str
    title: str
    body: str


class ReminderTrigger(BaseModel):
    """Recurring trigger: every day at hour:minute, or every weekday at hour:minute."""

    category: HabitCategory
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)
    weekday: int | None = Field(default=None, ge=MIN_WEEKDAY, le=MAX_WEEKDAY, description="1=Sunday .. 7=Saturday")

    @model_validator(mode="after")
    def check_weekday(self) -> Self:
        """Weekly triggers need a weekday; daily triggers ignore it."""
        if self.category == HabitCategory.WEEKLY and self.weekday is None:
            msg = "Weekly reminders need a weekday (1=Sunday .. 7=Saturday)"
            raise ValueError(msg)
        if self.category == HabitCategory.DAILY:
            self.weekday = None
        return self

    def describe(self) -> str:
        """Human-readable schedule, e.g. 'daily at 09:00'."""
        if self.weekday is None:
            return f"daily at {self.hour:02d}:{self.minute:02d}"
        return f"weekday {self.weekday} at {self.hour:02d}:{self.minute:02d}"
