"""Domain models and DTOs."""

from habit_coach.domain.create_models import HabitCreate
from habit_coach.domain.habit import Habit, HabitCategory
from habit_coach.domain.log import CompletionLog
from habit_coach.domain.update_models import HabitUpdate


__all__ = [
    "CompletionLog",
    "Habit",
    "HabitCategory",
    "HabitCreate",
    "HabitUpdate",
]
