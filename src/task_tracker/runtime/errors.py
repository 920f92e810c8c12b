"""Error taxonomy shared by services and the HTTP layer."""

from __future__ import annotations

from typing import Optional


class TaskTrackerError(Exception):
    """Operational error carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailure(TaskTrackerError):
    status_code = 400


class InvalidAssignmentError(TaskTrackerError):
    """Assignment target exists but cannot receive tasks."""

    status_code = 400


class UnauthorizedError(TaskTrackerError):
    status_code = 401


class ForbiddenError(TaskTrackerError):
    status_code = 403


class NotFoundError(TaskTrackerError):
    status_code = 404


class ConflictError(TaskTrackerError):
    status_code = 409


class RateLimitedError(TaskTrackerError):
    status_code = 429

    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after
