import pytest

from habit_coach.core.errors import HabitValidationError, SchedulerUnavailableError
from habit_coach.domain.habit import Habit, HabitCategory
from habit_coach.services.notification_service import ReminderScheduler, reminder_text
from tests.unit.mocks import OWNER, FakeNotificationBackend


def make_habit(**overrides) -> Habit:
    fields = {
        "id": "habit-1",
        "owner_id": OWNER,
        "name": "Drink Water",
        "description": "8 glasses a day",
        "reminder_enabled": True,
        "reminder_time": "09:00",
    }
    return Habit(**(fields | overrides))


@pytest.mark.unit
class TestRequestPermission:
    async def test_already_granted_does_not_prompt(self):
        backend = FakeNotificationBackend(granted=True)

        assert await ReminderScheduler(backend).request_permission() is True
        assert backend.permission_requests == 0

    async def test_prompts_when_not_granted(self):
        backend = FakeNotificationBackend(granted=False, grant_on_request=True)

        assert await ReminderScheduler(backend).request_permission() is True
        assert backend.permission_requests == 1

    async def test_denial_returns_false(self):
        backend = FakeNotificationBackend(granted=False, grant_on_request=False)

        assert await ReminderScheduler(backend).request_permission() is False

    async def test_unavailable_platform_returns_false(self):
        backend = FakeNotificationBackend(granted=False)

        async def unavailable() -> bool:
            raise SchedulerUnavailableError("no notification service")

        backend.request_permission = unavailable

        assert await ReminderScheduler(backend).request_permission() is False


@pytest.mark.unit
class TestSchedule:
    async def test_daily_reminder(self, reminders, backend):
        notification_id = await reminders.schedule("habit-1", "Time for Drink Water!", "8 glasses", 9, 0, "daily")

        assert notification_id == "notif-1"
        content, trigger = backend.live[notification_id]
        assert content.habit_id == "habit-1"
        assert content.title == "Time for Drink Water!"
        assert (trigger.hour, trigger.minute, trigger.weekday) == (9, 0, None)

    async def test_weekly_reminder_keeps_weekday(self, reminders, backend):
        notification_id = await reminders.schedule("habit-1", "t", "b", 18, 30, HabitCategory.WEEKLY, 2)

        _, trigger = backend.live[notification_id]
        assert trigger.category == HabitCategory.WEEKLY
        assert trigger.weekday == 2

    async def test_daily_reminder_ignores_weekday(self, reminders, backend):
        notification_id = await reminders.schedule("habit-1", "t", "b", 7, 15, "daily", 4)

        assert backend.live[notification_id][1].weekday is None

    async def test_weekly_without_weekday_is_rejected(self, reminders, backend):
        with pytest.raises(HabitValidationError, match="weekday"):
            await reminders.schedule("habit-1", "t", "b", 9, 0, "weekly")

        assert backend.live == {}

    @pytest.mark.parametrize(("hour", "minute"), [(24, 0), (-1, 0), (9, 60)])
    async def test_out_of_range_time_is_rejected(self, reminders, hour, minute):
        with pytest.raises(HabitValidationError):
            await reminders.schedule("habit-1", "t", "b", hour, minute, "daily")

    async def test_unknown_category_is_rejected(self, reminders):
        with pytest.raises(HabitValidationError):
            await reminders.schedule("habit-1", "t", "b", 9, 0, "monthly")

    async def test_permission_denied_returns_none(self):
        backend = FakeNotificationBackend(granted=False, grant_on_request=False)

        notification_id = await ReminderScheduler(backend).schedule("habit-1", "t", "b", 9, 0, "daily")

        assert notification_id is None
        assert backend.live == {}

    async def test_backend_failure_propagates(self, reminders, backend):
        backend.fail_schedule = True

        with pytest.raises(SchedulerUnavailableError):
            await reminders.schedule("habit-1", "t", "b", 9, 0, "daily")


@pytest.mark.unit
class TestScheduleForHabit:
    async def test_uses_habit_text(self, reminders, backend):
        notification_id = await reminders.schedule_for_habit(make_habit())

        content, trigger = backend.live[notification_id]
        assert content.title == "Time for Drink Water!"
        assert content.body == "8 glasses a day"
        assert (trigger.hour, trigger.minute) == (9, 0)

    async def test_default_body_when_description_empty(self):
        assert reminder_text(make_habit(description="")) == ("Time for Drink Water!", "Keep up the streak!")

    async def test_disabled_reminder_schedules_nothing(self, reminders, backend):
        habit = make_habit(reminder_enabled=False)

        assert await reminders.schedule_for_habit(habit) is None
        assert backend.live == {}

    async def test_weekly_habit_uses_weekday(self, reminders, backend):
        habit = make_habit(category="weekly", reminder_time="10:00", reminder_weekday=7)

        notification_id = await reminders.schedule_for_habit(habit)

        assert backend.live[notification_id][1].weekday == 7


@pytest.mark.unit
class TestCancel:
    @pytest.mark.parametrize("notification_id", [None, ""])
    async def test_missing_id_is_noop(self, reminders, backend, notification_id):
        await reminders.cancel(notification_id)

        assert backend.cancelled == []

    async def test_cancel_removes_trigger(self, reminders, backend):
        notification_id = await reminders.schedule("habit-1", "t", "b", 9, 0, "daily")

        await reminders.cancel(notification_id)

        assert backend.live == {}
        assert backend.cancelled == [notification_id]

    async def test_cancel_unknown_id_is_noop(self, reminders, backend):
        await reminders.cancel("never-scheduled")

        assert backend.live == {}

    async def test_cancel_all(self, reminders, backend):
        for hour in (7, 8, 9):
            await reminders.schedule("habit-1", "t", "b", hour, 0, "daily")

        await reminders.cancel_all()

        assert backend.list_ids() == []
        assert len(backend.cancelled) == 3
