"""habit-coach - habit tracking with streaks and recurring reminders."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from habit_coach.core.config import settings
from habit_coach.core.errors import HabitCoachError
from habit_coach.core.logging import configure_logfire, instrument_fastapi
from habit_coach.core.scheduler import ApschedulerNotificationBackend
from habit_coach.core.storage import BlobStore, get_blob_store
from habit_coach.interface.habits_router import habit_error_handler, router as habits_router
from habit_coach.services.habit_service import HabitStore
from habit_coach.services.notification_service import ReminderScheduler
from habit_coach.services.workflow_service import HabitWorkflow


logger = logging.getLogger(__name__)


async def check_storage_connectivity(blob_store: BlobStore) -> None:
    """Verify the blob store answers at startup.

    Logs a warning if unavailable but doesn't fail; every storage call surfaces
    StorageUnavailableError on its own.
    """
    if await blob_store.ping():
        logger.info("startup_validation", extra={"service": settings.storage_backend, "status": "ok"})
    else:
        logger.warning("startup_validation", extra={"service": settings.storage_backend, "status": "unavailable"})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    # Configure logging first so startup logs are captured
    configure_logfire()

    blob_store = get_blob_store()
    await check_storage_connectivity(blob_store)

    backend = ApschedulerNotificationBackend()
    backend.start()

    app.state.blob_store = blob_store
    app.state.notification_backend = backend
    app.state.workflow = HabitWorkflow(HabitStore(blob_store), ReminderScheduler(backend))
    logger.info("habit-coach started")

    yield

    # Shutdown
    backend.shutdown()
    close = getattr(blob_store, "close", None)
    if close is not None:
        await close()
    logger.info("habit-coach stopped")


app = FastAPI(
    title="habit-coach",
    description="Habit tracking with streaks and recurring reminders",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers and error handling
app.include_router(habits_router)
app.add_exception_handler(HabitCoachError, habit_error_handler)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)


@app.get("/health/storage")
async def storage_health_check(request: Request) -> JSONResponse:
    """Blob store health check endpoint."""
    blob_store: BlobStore = request.app.state.blob_store
    available = await blob_store.ping()
    return JSONResponse(
        content={"status": "healthy" if available else "unavailable", **blob_store.get_health_status()},
        status_code=200 if available else 503,
    )
