from __future__ import annotations

from typing import Optional

from .settings import Settings


class RemindersError(Exception):
    """Base class for every failure raised by the reminders bridge."""

    kind = "RemindersError"


class BinaryValidationError(RemindersError):
    """
    The native helper binary failed a path, size, executability or digest check.

    `code` is a machine-readable reason such as 'PATH_TRAVERSAL' or 'NOT_EXECUTABLE'.
    """

    kind = "BinaryValidationError"

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


class NotFoundError(RemindersError):
    """A targeted reminder or list does not exist at call time."""

    kind = "NotFound"


class ProcessExecutionError(RemindersError):
    """An external process exited with a non-zero status."""

    kind = "ProcessExecutionError"

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ProcessSpawnError(RemindersError):
    """An external process could not be started at all (missing or cannot be executed)."""

    kind = "ProcessSpawnError"


class ProcessTimeoutError(RemindersError, TimeoutError):
    """An external process exceeded its time limit and was killed."""

    kind = "TimeoutError"


class PermissionDeniedError(RemindersError):
    """One or both permission probes failed."""

    kind = "PermissionDenied"


class InvalidDateError(RemindersError, ValueError):
    """A due date did not match any accepted input shape."""

    kind = "InvalidDate"


# Errors whose message is written for the caller and is always safe to show.
_DESCRIPTIVE = (NotFoundError, PermissionDeniedError, InvalidDateError)


# PUBLIC_INTERFACE
def describe_failure(operation: str, error: BaseException, settings: Settings) -> str:
    """
    Build the single human-readable failure string returned to callers.

    Descriptive errors (not found, permission, invalid date) are shown as-is.
    Everything else is reduced to a generic message unless the settings allow
    internal detail (development posture or debug flag).
    """
    if isinstance(error, _DESCRIPTIVE):
        return f"Failed to {operation}: {error}"
    if settings.expose_error_details:
        detail = str(error)
        if isinstance(error, BinaryValidationError):
            detail = f"{error.code}: {detail}"
        return f"Failed to {operation}: {detail}"
    return f"Failed to {operation}: System error occurred"
