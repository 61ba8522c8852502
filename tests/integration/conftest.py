"""Fixtures for end-to-end tests across store, reminders and the HTTP layer."""

from collections.abc import Generator

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi.testclient import TestClient

from habit_coach.core.memory_store import InMemoryBlobStore
from habit_coach.core.scheduler import ApschedulerNotificationBackend
from habit_coach.interface.habits_router import get_workflow
from habit_coach.main import app
from habit_coach.services.habit_service import HabitStore
from habit_coach.services.notification_service import ReminderScheduler
from habit_coach.services.workflow_service import HabitWorkflow
from tests.unit.mocks import TODAY, FakeNotificationBackend


@pytest.fixture
def backend() -> FakeNotificationBackend:
    return FakeNotificationBackend()


@pytest.fixture
def workflow(backend: FakeNotificationBackend) -> HabitWorkflow:
    """Workflow over an in-memory store pinned to TODAY."""
    return HabitWorkflow(HabitStore(InMemoryBlobStore(), clock=lambda: TODAY), ReminderScheduler(backend))


@pytest.fixture
def apscheduler_backend() -> ApschedulerNotificationBackend:
    """Real APScheduler backend that is never started; jobs stay pending."""
    return ApschedulerNotificationBackend(AsyncIOScheduler(), permission_granted=True, timezone="UTC")


@pytest.fixture
def apscheduler_workflow(apscheduler_backend: ApschedulerNotificationBackend) -> HabitWorkflow:
    return HabitWorkflow(
        HabitStore(InMemoryBlobStore(), clock=lambda: TODAY), ReminderScheduler(apscheduler_backend)
    )


@pytest.fixture
def client(workflow: HabitWorkflow) -> Generator[TestClient, None, None]:
    """HTTP client with the workflow dependency overridden."""
    app.dependency_overrides[get_workflow] = lambda: workflow
    yield TestClient(app)
    app.dependency_overrides.clear()
