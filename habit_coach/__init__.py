"""habit-coach: habit tracking with streaks and recurring reminders."""
