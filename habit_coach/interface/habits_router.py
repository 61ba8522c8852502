"""HTTP endpoints for managing an owner's habits."""

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Body, Depends, Header, Request, status
from fastapi.responses import JSONResponse

from habit_coach.core.config import Constants
from habit_coach.core.errors import ErrorCode, HabitCoachError, classify_error_with_response
from habit_coach.services.workflow_service import HabitWorkflow


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/habits", tags=["habits"])

STATUS_BY_CODE = {
    ErrorCode.ERR_VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.ERR_HABIT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ERR_INVALID_OWNER: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.ERR_STORAGE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.ERR_SCHEDULER_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_workflow(request: Request) -> HabitWorkflow:
    """Workflow built during application startup."""
    return request.app.state.workflow


def get_owner_id(owner_id: str | None = Header(default=None, alias=Constants.OWNER_HEADER)) -> str:
    """Owner id supplied by the identity provider. Validated by the store."""
    return owner_id or ""


async def habit_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a HabitCoachError as a structured JSON error."""
    response = classify_error_with_response(exc)
    code = exc.code if isinstance(exc, HabitCoachError) else ErrorCode.ERR_UNKNOWN
    status_code = STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.warning(
        "habit_request_failed",
        extra={"path": request.url.path, "code": response.code, "status_code": status_code, "error": str(exc)},
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "code": response.code,
            "message": response.message,
            "suggestion": response.suggestion,
            "severity": response.severity.value,
        },
    )


@router.get("")
async def list_habits(
    owner_id: str = Depends(get_owner_id),
    workflow: HabitWorkflow = Depends(get_workflow),
) -> list[dict[str, Any]]:
    """List the owner's habits in creation order."""
    habits = await workflow.list_habits(owner_id)
    return [habit.to_record() for habit in habits]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_habit(
    payload: dict[str, Any] = Body(...),
    owner_id: str = Depends(get_owner_id),
    workflow: HabitWorkflow = Depends(get_workflow),
) -> dict[str, Any]:
    """Create a habit and schedule its reminder if enabled."""
    habit = await workflow.create_habit(owner_id, payload)
    return habit.to_record()


@router.get("/logs")
async def get_completion_logs(
    owner_id: str = Depends(get_owner_id),
    workflow: HabitWorkflow = Depends(get_workflow),
) -> list[dict[str, Any]]:
    """Return the owner's flat completion log."""
    logs = await workflow.store.get_completion_logs(owner_id)
    return [entry.model_dump(mode="json", by_alias=True) for entry in logs]


@router.post("/reset", status_code=status.HTTP_204_NO_CONTENT)
async def reset_all_data(
    owner_id: str = Depends(get_owner_id),
    workflow: HabitWorkflow = Depends(get_workflow),
) -> None:
    """Delete all of the owner's habit data and cancel every reminder."""
    await workflow.reset_all_data(owner_id)


@router.get("/{habit_id}")
async def get_habit(
    habit_id: str,
    owner_id: str = Depends(get_owner_id),
    workflow: HabitWorkflow = Depends(get_workflow),
) -> dict[str, Any]:
    """Return a single habit."""
    habit = await workflow.store.get_habit(owner_id, habit_id)
    return habit.to_record()


@router.patch("/{habit_id}")
async def edit_habit(
    habit_id: str,
    payload: dict[str, Any] = Body(...),
    owner_id: str = Depends(get_owner_id),
    workflow: HabitWorkflow = Depends(get_workflow),
) -> dict[str, Any]:
    """Apply a partial edit, rebuilding the reminder when needed."""
    habit = await workflow.edit_habit(owner_id, habit_id, payload)
    return habit.to_record()


@router.delete("/{habit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_habit(
    habit_id: str,
    owner_id: str = Depends(get_owner_id),
    workflow: HabitWorkflow = Depends(get_workflow),
) -> None:
    """Cancel the habit's reminder and delete it."""
    await workflow.delete_habit(owner_id, habit_id)


@router.put("/{habit_id}/completions/{day}")
async def mark_completed(
    habit_id: str,
    day: date,
    owner_id: str = Depends(get_owner_id),
    workflow: HabitWorkflow = Depends(get_workflow),
) -> dict[str, Any]:
    """Mark the habit done on day."""
    habit = await workflow.set_completion(owner_id, habit_id, day, True)
    return habit.to_record()


@router.delete("/{habit_id}/completions/{day}")
async def unmark_completed(
    habit_id: str,
    day: date,
    owner_id: str = Depends(get_owner_id),
    workflow: HabitWorkflow = Depends(get_workflow),
) -> dict[str, Any]:
    """Clear the habit's completion on day."""
    habit = await workflow.set_completion(owner_id, habit_id, day, False)
    return habit.to_record()
