from habit_coach.services.habit_service import HabitStore
from habit_coach.services.notification_service import ReminderScheduler
from habit_coach.services.session_service import OwnerSession
from habit_coach.services.streak_service import compute_streak
from habit_coach.services.workflow_service import HabitWorkflow


__all__ = [
    "HabitStore",
    "HabitWorkflow",
    "OwnerSession",
    "ReminderScheduler",
    "compute_streak",
]
