"""Tasks API endpoints."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.config import settings
from clubhub.crud.task import task as task_crud
from clubhub.database import get_db
from clubhub.dependencies import get_actor_id, require_actor_id
from clubhub.models.task import DependencyRelation, Task, TaskStatus
from clubhub.schemas.task import (
    AssignmentCreate,
    ChecklistItemCreate,
    ChecklistItemToggle,
    CommentCreate,
    DependencyCreate,
    DownstreamResponse,
    SubtaskCreate,
    SubtaskUpdate,
    TaskCreate,
    TaskMutationResponse,
    TaskResponse,
    TaskUpdate,
)
from clubhub.services.assignment_service import assignment_service
from clubhub.services.task_service import MutationResult, task_service

router = APIRouter()


def to_response(task_obj: Task) -> TaskResponse:
    response = TaskResponse.model_validate(task_obj)
    response.primary_assignee = assignment_service.primary_assignee(task_obj)
    return response


def to_mutation_response(result: MutationResult) -> TaskMutationResponse:
    return TaskMutationResponse(
        task=to_response(result.task),
        events=[event.value for event in result.events],
        warnings=result.warnings,
        successor_id=result.successor.id if result.successor is not None else None,
    )


@router.post("", response_model=TaskMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    """Create a task."""
    result = await task_service.create_task(db, task_data, actor_id=actor_id)
    return to_mutation_response(result)


@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    club_id: UUID,
    task_status: Optional[TaskStatus] = Query(default=None, alias="status"),
    skip: int = 0,
    limit: int = Query(default=100, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List club tasks ordered by due date."""
    tasks = await task_crud.get_by_club(db, club_id=club_id, status=task_status, skip=skip, limit=limit)
    return [to_response(task_obj) for task_obj in tasks]


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: UUID, db: AsyncSession = Depends(get_db)):
    """Get a task by ID."""
    return to_response(await task_service.get_task(db, task_id))


@router.patch("/{task_id}", response_model=TaskMutationResponse)
async def update_task(
    task_id: UUID,
    task_data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    """Update task fields and optionally its status."""
    result = await task_service.update_task(db, task_id, task_data, actor_id=actor_id)
    return to_mutation_response(result)


@router.post("/{task_id}/checklist", response_model=TaskMutationResponse, status_code=status.HTTP_201_CREATED)
async def add_checklist_item(
    task_id: UUID,
    item: ChecklistItemCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    result = await task_service.add_checklist_item(db, task_id, item.text, actor_id=actor_id)
    return to_mutation_response(result)


@router.patch("/{task_id}/checklist/{item_id}", response_model=TaskMutationResponse)
async def set_checklist_item(
    task_id: UUID,
    item_id: int,
    toggle: ChecklistItemToggle,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    """Complete or un-complete a checklist item; without `completed` it toggles."""
    result = await task_service.set_checklist_item(
        db,
        task_id,
        item_id,
        completed=toggle.completed,
        actor_id=actor_id,
        expected_version=toggle.expected_version,
    )
    return to_mutation_response(result)


@router.delete("/{task_id}/checklist/{item_id}", response_model=TaskMutationResponse)
async def remove_checklist_item(
    task_id: UUID,
    item_id: int,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    result = await task_service.remove_checklist_item(db, task_id, item_id, actor_id=actor_id)
    return to_mutation_response(result)


@router.post("/{task_id}/subtasks", response_model=TaskMutationResponse, status_code=status.HTTP_201_CREATED)
async def add_subtask(
    task_id: UUID,
    subtask: SubtaskCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    result = await task_service.add_subtask(
        db, task_id, subtask.title, assignee_id=subtask.assignee_id, actor_id=actor_id
    )
    return to_mutation_response(result)


@router.patch("/{task_id}/subtasks/{subtask_id}", response_model=TaskMutationResponse)
async def update_subtask(
    task_id: UUID,
    subtask_id: int,
    subtask: SubtaskUpdate,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    result = await task_service.set_subtask_status(
        db,
        task_id,
        subtask_id,
        subtask.status,
        actor_id=actor_id,
        expected_version=subtask.expected_version,
    )
    return to_mutation_response(result)


@router.delete("/{task_id}/subtasks/{subtask_id}", response_model=TaskMutationResponse)
async def remove_subtask(
    task_id: UUID,
    subtask_id: int,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    result = await task_service.remove_subtask(db, task_id, subtask_id, actor_id=actor_id)
    return to_mutation_response(result)


@router.post("/{task_id}/assignees", response_model=TaskMutationResponse)
async def assign_user(
    task_id: UUID,
    assignment: AssignmentCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    """Assign a user, or change the role of an existing assignee."""
    result = await task_service.assign(db, task_id, assignment.user_id, assignment.role, actor_id=actor_id)
    return to_mutation_response(result)


@router.delete("/{task_id}/assignees/{user_id}", response_model=TaskMutationResponse)
async def unassign_user(
    task_id: UUID,
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    result = await task_service.unassign(db, task_id, user_id, actor_id=actor_id)
    return to_mutation_response(result)


@router.post("/{task_id}/comments", response_model=TaskMutationResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: UUID,
    comment: CommentCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: UUID = Depends(require_actor_id),
):
    result = await task_service.add_comment(db, task_id, comment, actor_id=actor_id)
    return to_mutation_response(result)


@router.post("/{task_id}/dependencies", response_model=TaskMutationResponse, status_code=status.HTTP_201_CREATED)
async def add_dependency(
    task_id: UUID,
    dependency: DependencyCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    result = await task_service.add_dependency(
        db, task_id, dependency.task_id, dependency.relation, actor_id=actor_id
    )
    return to_mutation_response(result)


@router.delete("/{task_id}/dependencies/{target_id}", response_model=TaskMutationResponse)
async def remove_dependency(
    task_id: UUID,
    target_id: UUID,
    relation: DependencyRelation = DependencyRelation.BLOCKS,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    result = await task_service.remove_dependency(db, task_id, target_id, relation, actor_id=actor_id)
    return to_mutation_response(result)


@router.get("/{task_id}/downstream", response_model=DownstreamResponse)
async def get_downstream(
    task_id: UUID,
    max_depth: int = Query(default=settings.DEPENDENCY_MAX_DEPTH, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Tasks transitively blocked by this one."""
    downstream = await task_service.find_downstream(db, task_id, max_depth=max_depth)
    return DownstreamResponse(task_id=task_id, downstream=downstream)
