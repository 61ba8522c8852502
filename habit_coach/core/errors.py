"""Error taxonomy and classification utilities for habit operations."""

from enum import Enum

from pydantic import BaseModel


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Caller errors
    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_HABIT_NOT_FOUND = "ERR_HABIT_NOT_FOUND"
    ERR_INVALID_OWNER = "ERR_INVALID_OWNER"

    # Collaborator errors
    ERR_STORAGE_UNAVAILABLE = "ERR_STORAGE_UNAVAILABLE"
    ERR_SCHEDULER_UNAVAILABLE = "ERR_SCHEDULER_UNAVAILABLE"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class HabitCoachError(Exception):
    """Base class for all errors surfaced by the habit core."""

    code: str = ErrorCode.ERR_UNKNOWN


class HabitValidationError(HabitCoachError):
    """Bad field values on create or update. No state was changed."""

    code = ErrorCode.ERR_VALIDATION


class HabitNotFoundError(HabitCoachError):
    """Operation targets a habit id that does not exist for the owner."""

    code = ErrorCode.ERR_HABIT_NOT_FOUND

    def __init__(self, habit_id: str) -> None:
        super().__init__(f"Habit not found: {habit_id}")
        self.habit_id = habit_id


class InvalidOwnerError(HabitCoachError):
    """Missing or empty owner identifier."""

    code = ErrorCode.ERR_INVALID_OWNER


class StorageUnavailableError(HabitCoachError):
    """Reading or writing the blob store failed. The prior persisted state is authoritative."""

    code = ErrorCode.ERR_STORAGE_UNAVAILABLE


class SchedulerUnavailableError(HabitCoachError):
    """The trigger backend failed to create or cancel a reminder."""

    code = ErrorCode.ERR_SCHEDULER_UNAVAILABLE


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised during execution

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, HabitValidationError):
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION,
            message=str(exception) or "Some habit fields are invalid.",
            suggestion="Names need 2-50 characters, descriptions at most 100, and reminders need a time.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, HabitNotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_HABIT_NOT_FOUND,
            message="I couldn't find that habit.",
            suggestion="Refresh your habit list and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, InvalidOwnerError):
        return ErrorResponse(
            code=ErrorCode.ERR_INVALID_OWNER,
            message="You need to be signed in to manage habits.",
            suggestion="Sign in and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, StorageUnavailableError):
        return ErrorResponse(
            code=ErrorCode.ERR_STORAGE_UNAVAILABLE,
            message="Your habits could not be saved or loaded.",
            suggestion="Your previous data is unchanged. Please try again in a moment.",
            severity=ErrorSeverity.HIGH,
        )

    if isinstance(exception, SchedulerUnavailableError):
        return ErrorResponse(
            code=ErrorCode.ERR_SCHEDULER_UNAVAILABLE,
            message="The reminder could not be scheduled.",
            suggestion="Check notification permissions and edit the habit to try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
