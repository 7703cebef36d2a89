"""Dependency graph between tasks.

`fetch_task` is any callable mapping a task id to a Task (or None). It may be
a plain function or a coroutine function, so the same code serves the ORM
session and in-memory fixtures.
"""
import copy
import inspect
import logging
from collections import deque
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from uuid import UUID

from clubhub.config import settings
from clubhub.core.exceptions import NotFoundError, ValidationError
from clubhub.localization.helpers import get_translation
from clubhub.models.task import DependencyRelation, Task, TaskStatus

logger = logging.getLogger(__name__)

FetchTask = Callable[[UUID], Union[Optional[Task], Awaitable[Optional[Task]]]]


async def _resolve(fetch_task: FetchTask, task_id: UUID) -> Optional[Task]:
    result = fetch_task(task_id)
    if inspect.isawaitable(result):
        result = await result
    return result


def _targets(task: Task, relation: DependencyRelation) -> List[UUID]:
    return [
        UUID(str(entry["task_id"]))
        for entry in (task.dependencies or [])
        if entry.get("relation") == relation.value
    ]


class DependencyService:
    """Completion gating and downstream impact over task dependencies."""

    @staticmethod
    async def unresolved_blockers(task: Task, fetch_task: FetchTask) -> List[UUID]:
        """Ids of `blocked_by` targets that are not completed yet."""
        unresolved = []
        for target_id in _targets(task, DependencyRelation.BLOCKED_BY):
            target = await _resolve(fetch_task, target_id)
            if target is None:
                raise NotFoundError(get_translation("errors.task_not_found", task_id=target_id))
            if target.status != TaskStatus.COMPLETED.value:
                unresolved.append(target_id)
        return unresolved

    @staticmethod
    async def can_complete(task: Task, fetch_task: FetchTask) -> bool:
        """True when every `blocked_by` target is completed."""
        return not await DependencyService.unresolved_blockers(task, fetch_task)

    @staticmethod
    async def find_downstream(
        task: Task,
        fetch_task: FetchTask,
        max_depth: Optional[int] = None,
    ) -> List[UUID]:
        """Tasks reachable through `blocks` edges, in breadth-first order."""
        if max_depth is None:
            max_depth = settings.DEPENDENCY_MAX_DEPTH

        visited = {task.id}
        found: List[UUID] = []
        queue = deque((target_id, 1) for target_id in _targets(task, DependencyRelation.BLOCKS))

        while queue:
            task_id, depth = queue.popleft()
            if task_id in visited or depth > max_depth:
                continue
            visited.add(task_id)

            current = await _resolve(fetch_task, task_id)
            if current is None:
                logger.warning("Skipping missing downstream task %s of %s", task_id, task.id)
                continue
            found.append(task_id)
            for next_id in _targets(current, DependencyRelation.BLOCKS):
                if next_id not in visited:
                    queue.append((next_id, depth + 1))

        return found

    @staticmethod
    async def add_dependency(
        task: Task,
        target_id: UUID,
        relation: DependencyRelation,
        fetch_task: FetchTask,
    ) -> Task:
        """Add a relation; adding an existing (target, relation) pair is a no-op."""
        relation = DependencyRelation(relation)
        if target_id == task.id:
            raise ValidationError(get_translation("errors.self_dependency"), field="task_id")
        if await _resolve(fetch_task, target_id) is None:
            raise NotFoundError(get_translation("errors.task_not_found", task_id=target_id))

        dependencies: List[Dict[str, Any]] = [copy.deepcopy(entry) for entry in (task.dependencies or [])]
        for entry in dependencies:
            if entry.get("task_id") == str(target_id) and entry.get("relation") == relation.value:
                return task
        dependencies.append({"task_id": str(target_id), "relation": relation.value})
        task.dependencies = dependencies
        return task

    @staticmethod
    def remove_dependency(task: Task, target_id: UUID, relation: DependencyRelation) -> Task:
        relation = DependencyRelation(relation)
        dependencies = [copy.deepcopy(entry) for entry in (task.dependencies or [])]
        remaining = [
            entry
            for entry in dependencies
            if not (entry.get("task_id") == str(target_id) and entry.get("relation") == relation.value)
        ]
        if len(remaining) == len(dependencies):
            raise NotFoundError(
                get_translation("errors.dependency_not_found", relation=relation.value, task_id=target_id)
            )
        task.dependencies = remaining
        return task


dependency_service = DependencyService()
