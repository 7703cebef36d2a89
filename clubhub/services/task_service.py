"""Task orchestration: one load, one pipeline run and one write per mutation."""
from __future__ import annotations

import inspect
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from clubhub.core.exceptions import (
    ConcurrentModificationError,
    NotFoundError,
    RecurrenceSpawnFailed,
    ValidationError,
)
from clubhub.crud.activity import activity
from clubhub.crud.club import club as club_crud
from clubhub.crud.club import objective as objective_crud
from clubhub.crud.task import task as task_crud
from clubhub.localization.helpers import get_translation
from clubhub.middleware.metrics import recurrence_spawns_total
from clubhub.models.task import (
    AssigneeRole,
    DependencyRelation,
    SubtaskStatus,
    Task,
    TaskStatus,
)
from clubhub.models.webhook import TaskEvent
from clubhub.schemas.task import CommentCreate, TaskCreate, TaskUpdate
from clubhub.services.assignment_service import assignment_service
from clubhub.services.checklist_service import checklist_service
from clubhub.services.dependency_service import dependency_service
from clubhub.services.event_service import EventDispatcher, event_dispatcher
from clubhub.services.progress_service import progress_service
from clubhub.services.recurrence_service import recurrence_service
from clubhub.services.task_state_service import TaskSnapshot, task_state_machine

logger = logging.getLogger(__name__)

Mutation = Callable[[Task, datetime], Union[None, Awaitable[None]]]

# Fields an update may explicitly clear; null for any other field is ignored.
NULLABLE_FIELDS = {"description", "blocked_reason", "recurrence_rule"}


@dataclass
class MutationResult:
    """Outcome of a task mutation."""

    task: Task
    events: List[TaskEvent] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    successor: Optional[Task] = None


class TaskService:
    """High-level task operations used by the API and background jobs."""

    def __init__(self, dispatcher: EventDispatcher = event_dispatcher):
        self.dispatcher = dispatcher

    # Lookups

    @staticmethod
    async def get_task(db: AsyncSession, task_id: UUID) -> Task:
        task_obj = await task_crud.get(db, task_id)
        if task_obj is None:
            raise NotFoundError(get_translation("errors.task_not_found", task_id=task_id))
        return task_obj

    @staticmethod
    def fetcher(db: AsyncSession) -> Callable[[UUID], Awaitable[Optional[Task]]]:
        """Point lookup used by the dependency graph."""

        async def fetch(task_id: UUID) -> Optional[Task]:
            return await task_crud.get(db, task_id)

        return fetch

    @staticmethod
    async def _resolve_goal(
        db: AsyncSession,
        *,
        club_id: UUID,
        objective_id: UUID,
        goal_id: Optional[UUID] = None,
    ) -> UUID:
        """Goal of the objective; a conflicting explicit goal is rejected."""
        objective_obj = await objective_crud.get(db, objective_id)
        if objective_obj is None or objective_obj.club_id != club_id:
            raise NotFoundError(get_translation("errors.objective_not_found", objective_id=objective_id))
        if goal_id is not None and goal_id != objective_obj.goal_id:
            raise ValidationError(
                get_translation("errors.goal_mismatch", goal_id=goal_id, objective_id=objective_id),
                field="goal_id",
            )
        return objective_obj.goal_id

    @staticmethod
    def _check_version(task_obj: Task, expected_version: Optional[int]) -> None:
        if expected_version is not None and task_obj.version != expected_version:
            raise ConcurrentModificationError(task_obj.id)

    # Write path

    @staticmethod
    async def _commit(db: AsyncSession, task_id: UUID) -> None:
        try:
            await db.commit()
        except StaleDataError:
            await db.rollback()
            logger.info("Concurrent modification of task %s", task_id)
            raise ConcurrentModificationError(task_id)

    async def _spawn_successor(self, db: AsyncSession, task_obj: Task, now: datetime) -> Optional[Task]:
        """Create the next occurrence; failures are wrapped, never propagated raw."""
        task_id = task_obj.id
        try:
            successor = recurrence_service.expand(task_obj, now)
            if successor is None:
                recurrence_spawns_total.labels("ended").inc()
                return None
            successor.id = uuid.uuid4()
            db.add(successor)
            activity.record(
                db,
                actor_id=task_obj.completed_by,
                action=TaskEvent.RECURRENCE_SPAWNED.value,
                entity="task",
                entity_id=successor.id,
                club_id=successor.club_id,
                details={"parent_task_id": str(task_id), "occurrence": successor.occurrence_number},
            )
            await db.commit()
        except Exception as exc:
            await db.rollback()
            await db.refresh(task_obj)
            recurrence_spawns_total.labels("failed").inc()
            failure = RecurrenceSpawnFailed(task_id, str(exc))
            logger.exception("Recurrence spawn failed for task %s", task_id)
            raise failure from exc

        recurrence_spawns_total.labels("spawned").inc()
        logger.info("Spawned occurrence %s of task %s as %s", successor.occurrence_number, task_id, successor.id)
        return successor

    async def _finish(
        self,
        db: AsyncSession,
        task_obj: Task,
        events: List[TaskEvent],
        *,
        actor_id: Optional[UUID],
        now: datetime,
    ) -> MutationResult:
        """After the task write: recurrence spawn, then event dispatch."""
        result = MutationResult(task=task_obj, events=list(events))

        if TaskEvent.TASK_COMPLETED in events and task_obj.recurrence_rule:
            try:
                result.successor = await self._spawn_successor(db, task_obj, now)
            except RecurrenceSpawnFailed as exc:
                result.warnings.append(str(exc))
            if result.successor is not None:
                result.events.append(TaskEvent.RECURRENCE_SPAWNED)

        payload = self.event_payload(task_obj, actor_id=actor_id)
        if result.successor is not None:
            payload["successor_id"] = str(result.successor.id)
        await self.dispatcher.publish_many(result.events, payload, db)
        return result

    @staticmethod
    def event_payload(task_obj: Task, *, actor_id: Optional[UUID]) -> Dict[str, Any]:
        return {
            "task_id": str(task_obj.id),
            "club_id": str(task_obj.club_id),
            "status": task_obj.status,
            "progress": task_obj.progress,
            "assignees": [entry["user_id"] for entry in (task_obj.assignees or [])],
            "actor_id": str(actor_id) if actor_id else None,
        }

    async def mutate(
        self,
        db: AsyncSession,
        task_id: UUID,
        mutation: Mutation,
        *,
        actor_id: Optional[UUID],
        action: str,
        expected_version: Optional[int] = None,
        requested_status: Optional[TaskStatus] = None,
        extra_events: Optional[List[TaskEvent]] = None,
    ) -> MutationResult:
        """Load, mutate, run the state machine and write the task once.

        Any error before the write rolls the session back, so neither the
        mutation nor its derived state is persisted.
        """
        task_obj = await self.get_task(db, task_id)
        now = datetime.utcnow()
        try:
            self._check_version(task_obj, expected_version)
            snapshot = TaskSnapshot.of(task_obj)

            outcome = mutation(task_obj, now)
            if inspect.isawaitable(outcome):
                await outcome

            unresolved: List[UUID] = []
            # A task the pipeline auto-completes is not gated, with or without an explicit status.
            if (
                requested_status == TaskStatus.COMPLETED
                and task_obj.status != TaskStatus.COMPLETED.value
                and progress_service.compute_progress(task_obj) < 100
            ):
                unresolved = await dependency_service.unresolved_blockers(task_obj, self.fetcher(db))
            task_state_machine.validate_requested_status(
                task_obj, requested_status, unresolved_blockers=unresolved
            )

            transition = task_state_machine.run(
                task_obj,
                snapshot,
                actor_id=actor_id,
                now=now,
                requested_status=requested_status,
            )
            task_obj.updated_at = now
            events = list(extra_events or []) + transition.events
            activity.record(
                db,
                actor_id=actor_id,
                action=action,
                entity="task",
                entity_id=task_id,
                club_id=task_obj.club_id,
                details={"events": [event.value for event in events]},
            )
        except Exception:
            await db.rollback()
            raise

        await self._commit(db, task_id)
        return await self._finish(db, task_obj, events, actor_id=actor_id, now=now)

    # Operations

    async def create_task(
        self,
        db: AsyncSession,
        payload: TaskCreate,
        *,
        actor_id: Optional[UUID],
    ) -> MutationResult:
        """Create a task with its initial collections and derived state."""
        if await club_crud.get(db, payload.club_id) is None:
            raise NotFoundError(get_translation("errors.club_not_found", club_id=payload.club_id))
        goal_id = await self._resolve_goal(
            db,
            club_id=payload.club_id,
            objective_id=payload.objective_id,
            goal_id=payload.goal_id,
        )

        now = datetime.utcnow()
        task_obj = Task(
            id=uuid.uuid4(),
            title=payload.title,
            description=payload.description,
            club_id=payload.club_id,
            objective_id=payload.objective_id,
            goal_id=goal_id,
            status=TaskStatus.NOT_STARTED.value,
            priority=payload.priority.value,
            progress=payload.progress,
            start_date=payload.start_date or now,
            due_date=payload.due_date,
            assignees=[],
            checklist=[],
            subtasks=[],
            dependencies=[],
            comments=[],
            tags=list(payload.tags),
            recurrence_rule=payload.recurrence_rule.model_dump(mode="json") if payload.recurrence_rule else None,
            occurrence_number=1,
            created_by=actor_id,
            created_at=now,
            updated_at=now,
        )
        snapshot = TaskSnapshot.of(task_obj)

        checklist: List[Dict[str, Any]] = []
        for item in payload.checklist:
            checklist = checklist_service.add_checklist_item(checklist, item.text)
        task_obj.checklist = checklist

        subtasks: List[Dict[str, Any]] = []
        for subtask in payload.subtasks:
            subtasks = checklist_service.add_subtask(subtasks, subtask.title, subtask.assignee_id)
        task_obj.subtasks = subtasks

        for assignment in payload.assignees:
            assignment_service.assign(task_obj, assignment.user_id, assignment.role, assigned_by=actor_id, now=now)

        fetch = self.fetcher(db)
        for dependency in payload.dependencies:
            await dependency_service.add_dependency(task_obj, dependency.task_id, dependency.relation, fetch)

        transition = task_state_machine.run(task_obj, snapshot, actor_id=actor_id, now=now)
        events = [TaskEvent.TASK_CREATED]
        if task_obj.assignees:
            events.append(TaskEvent.TASK_ASSIGNED)
        events.extend(transition.events)

        db.add(task_obj)
        activity.record(
            db,
            actor_id=actor_id,
            action=TaskEvent.TASK_CREATED.value,
            entity="task",
            entity_id=task_obj.id,
            club_id=task_obj.club_id,
        )
        await db.commit()
        logger.info("Created task %s in club %s", task_obj.id, task_obj.club_id)
        return await self._finish(db, task_obj, events, actor_id=actor_id, now=now)

    async def update_task(
        self,
        db: AsyncSession,
        task_id: UUID,
        payload: TaskUpdate,
        *,
        actor_id: Optional[UUID],
    ) -> MutationResult:
        """Apply scalar field updates and an optional explicit status."""
        changes = payload.model_dump(exclude_unset=True, exclude={"status", "expected_version"})
        if "recurrence_rule" in changes:
            changes["recurrence_rule"] = (
                payload.recurrence_rule.model_dump(mode="json") if payload.recurrence_rule else None
            )

        async def apply(task_obj: Task, now: datetime) -> None:
            if "blocked_reason" in changes and task_obj.status == TaskStatus.COMPLETED.value:
                raise ValidationError(
                    get_translation(
                        "errors.completed_is_terminal", task_id=task_obj.id, status=TaskStatus.BLOCKED.value
                    ),
                    field="blocked_reason",
                )
            if changes.get("objective_id") is not None and changes["objective_id"] != task_obj.objective_id:
                task_obj.goal_id = await self._resolve_goal(
                    db, club_id=task_obj.club_id, objective_id=changes["objective_id"]
                )
            for name, value in changes.items():
                if value is None and name not in NULLABLE_FIELDS:
                    continue
                if name == "priority":
                    value = value.value
                setattr(task_obj, name, value)

        return await self.mutate(
            db,
            task_id,
            apply,
            actor_id=actor_id,
            action="task.updated",
            expected_version=payload.expected_version,
            requested_status=payload.status,
        )

    async def add_checklist_item(
        self,
        db: AsyncSession,
        task_id: UUID,
        text: str,
        *,
        actor_id: Optional[UUID],
        expected_version: Optional[int] = None,
    ) -> MutationResult:
        def apply(task_obj: Task, now: datetime) -> None:
            task_obj.checklist = checklist_service.add_checklist_item(task_obj.checklist, text)

        return await self.mutate(
            db, task_id, apply, actor_id=actor_id, action="checklist.added", expected_version=expected_version
        )

    async def set_checklist_item(
        self,
        db: AsyncSession,
        task_id: UUID,
        item_id: int,
        *,
        completed: Optional[bool],
        actor_id: Optional[UUID],
        expected_version: Optional[int] = None,
    ) -> MutationResult:
        """Complete, un-complete or toggle a checklist item."""

        def apply(task_obj: Task, now: datetime) -> None:
            task_obj.checklist = checklist_service.set_checklist_item(
                task_obj.checklist, item_id, completed=completed, user_id=actor_id, now=now
            )

        return await self.mutate(
            db, task_id, apply, actor_id=actor_id, action="checklist.toggled", expected_version=expected_version
        )

    async def remove_checklist_item(
        self,
        db: AsyncSession,
        task_id: UUID,
        item_id: int,
        *,
        actor_id: Optional[UUID],
        expected_version: Optional[int] = None,
    ) -> MutationResult:
        def apply(task_obj: Task, now: datetime) -> None:
            task_obj.checklist = checklist_service.remove_checklist_item(task_obj.checklist, item_id)

        return await self.mutate(
            db, task_id, apply, actor_id=actor_id, action="checklist.removed", expected_version=expected_version
        )

    async def add_subtask(
        self,
        db: AsyncSession,
        task_id: UUID,
        title: str,
        *,
        assignee_id: Optional[UUID] = None,
        actor_id: Optional[UUID],
        expected_version: Optional[int] = None,
    ) -> MutationResult:
        def apply(task_obj: Task, now: datetime) -> None:
            task_obj.subtasks = checklist_service.add_subtask(task_obj.subtasks, title, assignee_id)

        return await self.mutate(
            db, task_id, apply, actor_id=actor_id, action="subtask.added", expected_version=expected_version
        )

    async def set_subtask_status(
        self,
        db: AsyncSession,
        task_id: UUID,
        subtask_id: int,
        status: SubtaskStatus,
        *,
        actor_id: Optional[UUID],
        expected_version: Optional[int] = None,
    ) -> MutationResult:
        def apply(task_obj: Task, now: datetime) -> None:
            task_obj.subtasks = checklist_service.set_subtask_status(task_obj.subtasks, subtask_id, status, now=now)

        return await self.mutate(
            db, task_id, apply, actor_id=actor_id, action="subtask.updated", expected_version=expected_version
        )

    async def remove_subtask(
        self,
        db: AsyncSession,
        task_id: UUID,
        subtask_id: int,
        *,
        actor_id: Optional[UUID],
        expected_version: Optional[int] = None,
    ) -> MutationResult:
        def apply(task_obj: Task, now: datetime) -> None:
            task_obj.subtasks = checklist_service.remove_subtask(task_obj.subtasks, subtask_id)

        return await self.mutate(
            db, task_id, apply, actor_id=actor_id, action="subtask.removed", expected_version=expected_version
        )

    async def assign(
        self,
        db: AsyncSession,
        task_id: UUID,
        user_id: UUID,
        role: AssigneeRole = AssigneeRole.CONTRIBUTOR,
        *,
        actor_id: Optional[UUID],
    ) -> MutationResult:
        def apply(task_obj: Task, now: datetime) -> None:
            assignment_service.assign(task_obj, user_id, role, assigned_by=actor_id, now=now)

        return await self.mutate(
            db,
            task_id,
            apply,
            actor_id=actor_id,
            action=TaskEvent.TASK_ASSIGNED.value,
            extra_events=[TaskEvent.TASK_ASSIGNED],
        )

    async def unassign(
        self,
        db: AsyncSession,
        task_id: UUID,
        user_id: UUID,
        *,
        actor_id: Optional[UUID],
    ) -> MutationResult:
        def apply(task_obj: Task, now: datetime) -> None:
            assignment_service.unassign(task_obj, user_id)

        return await self.mutate(db, task_id, apply, actor_id=actor_id, action="task.unassigned")

    async def add_comment(
        self,
        db: AsyncSession,
        task_id: UUID,
        payload: CommentCreate,
        *,
        actor_id: UUID,
    ) -> MutationResult:
        def apply(task_obj: Task, now: datetime) -> None:
            task_obj.comments = checklist_service.add_comment(
                task_obj.comments,
                author_id=actor_id,
                content=payload.content,
                mentions=payload.mentions,
                attachments=[attachment.model_dump() for attachment in payload.attachments],
                now=now,
            )

        return await self.mutate(
            db,
            task_id,
            apply,
            actor_id=actor_id,
            action=TaskEvent.TASK_COMMENTED.value,
            extra_events=[TaskEvent.TASK_COMMENTED],
        )

    async def add_dependency(
        self,
        db: AsyncSession,
        task_id: UUID,
        target_id: UUID,
        relation: DependencyRelation = DependencyRelation.BLOCKS,
        *,
        actor_id: Optional[UUID],
    ) -> MutationResult:
        fetch = self.fetcher(db)

        async def apply(task_obj: Task, now: datetime) -> None:
            await dependency_service.add_dependency(task_obj, target_id, relation, fetch)

        return await self.mutate(db, task_id, apply, actor_id=actor_id, action="dependency.added")

    async def remove_dependency(
        self,
        db: AsyncSession,
        task_id: UUID,
        target_id: UUID,
        relation: DependencyRelation,
        *,
        actor_id: Optional[UUID],
    ) -> MutationResult:
        def apply(task_obj: Task, now: datetime) -> None:
            dependency_service.remove_dependency(task_obj, target_id, relation)

        return await self.mutate(db, task_id, apply, actor_id=actor_id, action="dependency.removed")

    async def find_downstream(
        self,
        db: AsyncSession,
        task_id: UUID,
        *,
        max_depth: Optional[int] = None,
    ) -> List[UUID]:
        task_obj = await self.get_task(db, task_id)
        return await dependency_service.find_downstream(task_obj, self.fetcher(db), max_depth)


task_service = TaskService()
