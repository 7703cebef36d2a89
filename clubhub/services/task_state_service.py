"""Task state machine.

Every mutation runs the same ordered pipeline before the single write of the
task row:

    0. refresh progress from the checklist / subtasks
    1. auto-complete when progress reaches 100
    2. auto-block on a newly set blocked_reason, auto-unblock when it is cleared
    3. apply the caller's explicit status, unless step 1 already completed

Each step is a plain function of the task and the snapshot taken before the
mutation, so the ordering can be tested without a database.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from clubhub.core.exceptions import DependencyUnresolvedError, ValidationError
from clubhub.localization.helpers import get_translation
from clubhub.middleware.metrics import task_transitions_total
from clubhub.models.task import Task, TaskStatus
from clubhub.models.webhook import TaskEvent
from clubhub.services.progress_service import progress_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskSnapshot:
    """Fields the pipeline compares against after a mutation."""

    status: TaskStatus
    progress: int
    blocked_reason: Optional[str]

    @classmethod
    def of(cls, task: Task) -> "TaskSnapshot":
        return cls(
            status=TaskStatus(task.status or TaskStatus.NOT_STARTED.value),
            progress=int(task.progress or 0),
            blocked_reason=_clean_reason(task.blocked_reason),
        )


@dataclass
class TransitionResult:
    """What the pipeline did to the task."""

    previous_status: TaskStatus
    status: TaskStatus
    events: List[TaskEvent] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return TaskEvent.TASK_COMPLETED in self.events


def _clean_reason(reason: Optional[str]) -> Optional[str]:
    if reason is None:
        return None
    reason = reason.strip()
    return reason or None


class TaskStateMachine:
    """Ordered transition pipeline for a single task."""

    @staticmethod
    def validate_requested_status(
        task: Task,
        requested: Optional[TaskStatus],
        *,
        unresolved_blockers: Sequence[UUID] = (),
    ) -> None:
        """Reject an explicit status change before anything is mutated.

        `task` must already carry the caller's other field changes (notably
        `blocked_reason`).
        """
        if requested is None:
            return
        requested = TaskStatus(requested)
        current = TaskStatus(task.status or TaskStatus.NOT_STARTED.value)

        if current == TaskStatus.COMPLETED:
            if requested == TaskStatus.COMPLETED:
                return
            raise ValidationError(
                get_translation("errors.completed_is_terminal", task_id=task.id, status=requested.value),
                field="status",
            )

        if requested == TaskStatus.BLOCKED and not _clean_reason(task.blocked_reason):
            raise ValidationError(get_translation("errors.blocked_reason_required"), field="blocked_reason")

        if requested == TaskStatus.COMPLETED and unresolved_blockers:
            raise DependencyUnresolvedError(unresolved_blockers)

    @staticmethod
    def refresh_progress(task: Task) -> None:
        if task.status == TaskStatus.COMPLETED.value:
            task.progress = 100
            return
        task.progress = progress_service.compute_progress(task)

    @staticmethod
    def mark_completed(task: Task, *, actor_id: Optional[UUID], now: datetime) -> None:
        task.status = TaskStatus.COMPLETED.value
        task.progress = 100
        task.completed_at = now
        task.completed_by = actor_id or task.created_by
        TaskStateMachine.clear_blocking(task)

    @staticmethod
    def mark_blocked(task: Task, *, actor_id: Optional[UUID], now: datetime) -> None:
        task.status = TaskStatus.BLOCKED.value
        task.blocked_at = now
        task.blocked_by = actor_id

    @staticmethod
    def clear_blocking(task: Task) -> None:
        task.blocked_reason = None
        task.blocked_at = None
        task.blocked_by = None

    @staticmethod
    def status_after_unblock(task: Task) -> TaskStatus:
        return TaskStatus.IN_PROGRESS if (task.progress or 0) > 0 else TaskStatus.NOT_STARTED

    @staticmethod
    def auto_complete(task: Task, *, actor_id: Optional[UUID], now: datetime) -> Optional[TaskEvent]:
        if task.progress != 100 or task.status == TaskStatus.COMPLETED.value:
            return None
        TaskStateMachine.mark_completed(task, actor_id=actor_id, now=now)
        return TaskEvent.TASK_COMPLETED

    @staticmethod
    def auto_block(task: Task, *, actor_id: Optional[UUID], now: datetime) -> Optional[TaskEvent]:
        reason = _clean_reason(task.blocked_reason)
        task.blocked_reason = reason
        if task.status == TaskStatus.COMPLETED.value:
            return None

        if reason and task.status != TaskStatus.BLOCKED.value:
            TaskStateMachine.mark_blocked(task, actor_id=actor_id, now=now)
            return TaskEvent.TASK_BLOCKED

        if not reason and task.status == TaskStatus.BLOCKED.value:
            TaskStateMachine.clear_blocking(task)
            task.status = TaskStateMachine.status_after_unblock(task).value
            return TaskEvent.TASK_UNBLOCKED

        return None

    @staticmethod
    def apply_manual(
        task: Task,
        requested: Optional[TaskStatus],
        *,
        actor_id: Optional[UUID],
        now: datetime,
    ) -> List[TaskEvent]:
        if requested is None:
            return []
        requested = TaskStatus(requested)
        if requested.value == task.status or task.status == TaskStatus.COMPLETED.value:
            return []

        if requested == TaskStatus.COMPLETED:
            TaskStateMachine.mark_completed(task, actor_id=actor_id, now=now)
            return [TaskEvent.TASK_COMPLETED]

        if requested == TaskStatus.BLOCKED:
            TaskStateMachine.mark_blocked(task, actor_id=actor_id, now=now)
            return [TaskEvent.TASK_BLOCKED]

        events = []
        if task.status == TaskStatus.BLOCKED.value:
            TaskStateMachine.clear_blocking(task)
            events.append(TaskEvent.TASK_UNBLOCKED)
        task.status = requested.value
        events.append(TaskEvent.TASK_STATUS_CHANGED)
        return events

    @staticmethod
    def run(
        task: Task,
        snapshot: TaskSnapshot,
        *,
        actor_id: Optional[UUID],
        now: datetime,
        requested_status: Optional[TaskStatus] = None,
    ) -> TransitionResult:
        """Run the full pipeline and return the emitted events."""
        result = TransitionResult(previous_status=snapshot.status, status=snapshot.status)

        TaskStateMachine.refresh_progress(task)

        event = TaskStateMachine.auto_complete(task, actor_id=actor_id, now=now)
        if event:
            result.events.append(event)
            task_transitions_total.labels(TaskStatus.COMPLETED.value, "auto").inc()

        event = TaskStateMachine.auto_block(task, actor_id=actor_id, now=now)
        if event:
            result.events.append(event)
            task_transitions_total.labels(task.status, "auto").inc()

        manual_events = TaskStateMachine.apply_manual(task, requested_status, actor_id=actor_id, now=now)
        if manual_events:
            result.events.extend(manual_events)
            task_transitions_total.labels(task.status, "manual").inc()

        result.status = TaskStatus(task.status)
        if result.status != result.previous_status:
            logger.info(
                "Task %s transitioned %s -> %s (%s)",
                task.id,
                result.previous_status.value,
                result.status.value,
                ", ".join(event.value for event in result.events),
            )
        return result


task_state_machine = TaskStateMachine()
