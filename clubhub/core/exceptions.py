"""Custom exceptions."""
from typing import Any, Iterable, Optional
from uuid import UUID

from fastapi import HTTPException, status

from clubhub.localization.helpers import get_translation


class NotFoundError(HTTPException):
    """Resource not found exception."""

    def __init__(self, detail: Optional[str] = None, locale: str = "en"):
        if detail is None:
            detail = get_translation("errors.resource_not_found", locale)
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ValidationError(HTTPException):
    """Validation exception."""

    def __init__(self, detail: Optional[str] = None, locale: str = "en", field: Optional[str] = None):
        if detail is None:
            detail = get_translation("errors.validation_error", locale)
        self.field = field
        if field:
            detail = {"field": field, "message": detail}
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class ConflictError(HTTPException):
    """Conflict exception."""

    def __init__(self, detail: Optional[Any] = None, locale: str = "en"):
        if detail is None:
            detail = get_translation("errors.resource_conflict", locale)
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class DependencyUnresolvedError(ConflictError):
    """Manual completion attempted while blocked_by tasks are still open."""

    def __init__(self, task_ids: Iterable[UUID], locale: str = "en"):
        self.task_ids = [UUID(str(task_id)) for task_id in task_ids]
        message = get_translation(
            "errors.dependency_unresolved",
            locale,
            task_ids=", ".join(str(task_id) for task_id in self.task_ids),
        )
        super().__init__(
            detail={
                "message": message,
                "blocked_by": [str(task_id) for task_id in self.task_ids],
            },
            locale=locale,
        )


class ConcurrentModificationError(ConflictError):
    """Optimistic concurrency conflict on a single task write."""

    def __init__(self, task_id: UUID, locale: str = "en"):
        self.task_id = task_id
        super().__init__(
            detail={
                "message": get_translation("errors.concurrent_modification", locale, task_id=task_id),
                "retry": True,
            },
            locale=locale,
        )


class RecurrenceSpawnFailed(Exception):
    """The next occurrence of a recurring task could not be created.

    Never aborts the completion that triggered it; it is logged and reported
    as a warning on the mutation result.
    """

    def __init__(self, task_id: UUID, reason: str):
        self.task_id = task_id
        self.reason = reason
        super().__init__(f"{get_translation('errors.recurrence_spawn_failed', task_id=task_id)}: {reason}")
