"""Task schemas."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from clubhub.models.task import (
    AssigneeRole,
    DependencyRelation,
    RecurrenceFrequency,
    SubtaskStatus,
    TaskPriority,
    TaskStatus,
)
from clubhub.utils.dates import as_naive_utc


class RecurrenceRule(BaseModel):
    """Recurrence rule carried by a recurring task."""

    frequency: RecurrenceFrequency
    interval: int = Field(default=1, ge=1)
    days_of_week: List[int] = Field(default_factory=list)  # 0 = Sunday ... 6 = Saturday
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    end_date: Optional[datetime] = None
    occurrences: Optional[int] = Field(default=None, ge=1)
    series_start: Optional[datetime] = None  # Anchor date, set when the first successor spawns

    @field_validator("days_of_week")
    @classmethod
    def _check_days_of_week(cls, value: List[int]) -> List[int]:
        for day in value:
            if day < 0 or day > 6:
                raise ValueError("days_of_week values must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(value))

    @field_validator("end_date", "series_start")
    @classmethod
    def _normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(value)


class ChecklistItemCreate(BaseModel):
    """New checklist item."""

    text: str = Field(min_length=1, max_length=500)


class ChecklistItemToggle(BaseModel):
    """Checklist toggle payload; omitted `completed` flips the item."""

    completed: Optional[bool] = None
    expected_version: Optional[int] = None


class ChecklistItemResponse(BaseModel):
    id: int
    text: str
    completed: bool = False
    completed_by: Optional[UUID] = None
    completed_at: Optional[datetime] = None


class SubtaskCreate(BaseModel):
    """New subtask."""

    title: str = Field(min_length=1, max_length=200)
    assignee_id: Optional[UUID] = None


class SubtaskUpdate(BaseModel):
    """Subtask status change."""

    status: SubtaskStatus
    expected_version: Optional[int] = None


class SubtaskResponse(BaseModel):
    id: int
    title: str
    status: SubtaskStatus = SubtaskStatus.NOT_STARTED
    assignee_id: Optional[UUID] = None
    completed_at: Optional[datetime] = None


class AssignmentCreate(BaseModel):
    """Assign (or re-assign) a user to a task."""

    user_id: UUID
    role: AssigneeRole = AssigneeRole.CONTRIBUTOR


class AssigneeResponse(BaseModel):
    user_id: UUID
    role: AssigneeRole
    assigned_at: datetime
    assigned_by: Optional[UUID] = None


class Attachment(BaseModel):
    """Comment attachment reference; files live elsewhere."""

    filename: str
    url: str
    mime_type: Optional[str] = None
    size: Optional[int] = Field(default=None, ge=0)


class CommentCreate(BaseModel):
    """New comment."""

    content: str = Field(min_length=1, max_length=2000)
    mentions: List[UUID] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)


class CommentResponse(BaseModel):
    id: int
    author_id: UUID
    content: str
    mentions: List[UUID] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    created_at: datetime


class DependencyCreate(BaseModel):
    """Relation from the current task to another task."""

    task_id: UUID
    relation: DependencyRelation = DependencyRelation.BLOCKS


class DependencyResponse(BaseModel):
    task_id: UUID
    relation: DependencyRelation


class TaskCreate(BaseModel):
    """Task creation schema."""

    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    club_id: UUID
    objective_id: UUID
    goal_id: Optional[UUID] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime
    start_date: Optional[datetime] = None
    progress: int = Field(default=0, ge=0, le=100)
    tags: List[str] = Field(default_factory=list)
    checklist: List[ChecklistItemCreate] = Field(default_factory=list)
    subtasks: List[SubtaskCreate] = Field(default_factory=list)
    assignees: List[AssignmentCreate] = Field(default_factory=list)
    dependencies: List[DependencyCreate] = Field(default_factory=list)
    recurrence_rule: Optional[RecurrenceRule] = None

    @field_validator("due_date", "start_date")
    @classmethod
    def _normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(value)


class TaskUpdate(BaseModel):
    """Task update schema; only fields that are sent are applied."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    objective_id: Optional[UUID] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    status: Optional[TaskStatus] = None
    blocked_reason: Optional[str] = Field(default=None, max_length=1000)
    tags: Optional[List[str]] = None
    recurrence_rule: Optional[RecurrenceRule] = None
    expected_version: Optional[int] = None

    @field_validator("due_date", "start_date")
    @classmethod
    def _normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(value)


class TaskFilter(BaseModel):
    """Filter over the task population used by scans and analytics."""

    club_id: Optional[UUID] = None
    objective_id: Optional[UUID] = None
    goal_id: Optional[UUID] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None

    @field_validator("created_from", "created_to")
    @classmethod
    def _normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(value)


class TaskResponse(BaseModel):
    """Task response schema."""

    id: UUID
    title: str
    description: Optional[str] = None
    club_id: UUID
    objective_id: UUID
    goal_id: Optional[UUID] = None
    status: TaskStatus
    priority: TaskPriority
    progress: int
    start_date: datetime
    due_date: datetime
    assignees: List[AssigneeResponse] = Field(default_factory=list)
    checklist: List[ChecklistItemResponse] = Field(default_factory=list)
    subtasks: List[SubtaskResponse] = Field(default_factory=list)
    dependencies: List[DependencyResponse] = Field(default_factory=list)
    comments: List[CommentResponse] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    recurrence_rule: Optional[RecurrenceRule] = None
    occurrence_number: int = 1
    parent_task_id: Optional[UUID] = None
    blocked_reason: Optional[str] = None
    blocked_by: Optional[UUID] = None
    blocked_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[UUID] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    version: int
    is_overdue: bool = False
    days_remaining: int = 0
    primary_assignee: Optional[UUID] = None

    class Config:
        from_attributes = True


class TaskMutationResponse(BaseModel):
    """Result of a task mutation: the task plus what the engine did."""

    task: TaskResponse
    events: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    successor_id: Optional[UUID] = None


class DownstreamResponse(BaseModel):
    """Tasks transitively impacted through `blocks` edges."""

    task_id: UUID
    downstream: List[UUID] = Field(default_factory=list)
