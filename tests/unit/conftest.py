"""Pytest configuration and fixtures for unit tests."""

from datetime import date

import pytest

from habit_coach.core.memory_store import InMemoryBlobStore
from habit_coach.services.habit_service import HabitStore
from habit_coach.services.notification_service import ReminderScheduler
from habit_coach.services.workflow_service import HabitWorkflow
from tests.unit.mocks import TODAY, FakeNotificationBackend


@pytest.fixture
def today() -> date:
    """Fixed reference day for streak evaluation."""
    return TODAY


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    """Provides a fresh in-memory blob store for each test."""
    return InMemoryBlobStore()


@pytest.fixture
def store(blob_store: InMemoryBlobStore) -> HabitStore:
    """Habit store pinned to TODAY."""
    return HabitStore(blob_store, clock=lambda: TODAY)


@pytest.fixture
def backend() -> FakeNotificationBackend:
    """Notification backend with permission granted."""
    return FakeNotificationBackend()


@pytest.fixture
def reminders(backend: FakeNotificationBackend) -> ReminderScheduler:
    return ReminderScheduler(backend)


@pytest.fixture
def workflow(store: HabitStore, reminders: ReminderScheduler) -> HabitWorkflow:
    return HabitWorkflow(store, reminders)


@pytest.fixture
def drink_water() -> dict:
    """Returns sample habit data with a daily 09:00 reminder."""
    return {
        "name": "Drink Water",
        "description": "8 glasses a day",
        "category": "daily",
        "reminderEnabled": True,
        "reminderTime": "09:00",
    }
