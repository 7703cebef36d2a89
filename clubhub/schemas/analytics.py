"""Analytics schemas."""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from clubhub.models.task import TaskPriority, TaskStatus


class ClubPerformance(BaseModel):
    club_id: UUID
    name: str
    member_count: int
    tasks_completed: int

    class Config:
        from_attributes = True


class GrowthPoint(BaseModel):
    date: date
    count: int

    class Config:
        from_attributes = True


class EngagementPoint(BaseModel):
    date: date
    active_users: int
    new_registrations: int
    task_creations: int

    class Config:
        from_attributes = True


class AnalyticsReportResponse(BaseModel):
    """Platform or club analytics report."""

    window_start: date
    window_end: date
    total_tasks: int
    completed_tasks: int
    task_completion_rate: float
    average_tasks_per_user: float
    top_performing_clubs: List[ClubPerformance] = Field(default_factory=list)
    user_growth: List[GrowthPoint] = Field(default_factory=list)
    club_growth: List[GrowthPoint] = Field(default_factory=list)
    user_engagement_metrics: List[EngagementPoint] = Field(default_factory=list)
    partial: bool = False
    generated_at: datetime

    class Config:
        from_attributes = True


class TaskOverview(BaseModel):
    status: TaskStatus
    progress: int
    priority: TaskPriority
    is_overdue: bool
    days_remaining: int
    primary_assignee: Optional[UUID] = None


class TaskCompletion(BaseModel):
    checklist_total: int
    checklist_completed: int
    checklist_percentage: float
    subtasks_total: int
    subtasks_completed: int
    subtasks_percentage: float


class TaskEngagement(BaseModel):
    comment_count: int
    assignee_count: int
    last_activity: Optional[datetime] = None


class TaskInsightsResponse(BaseModel):
    """Per-task analytics."""

    task_id: UUID
    overview: TaskOverview
    completion: TaskCompletion
    engagement: TaskEngagement


class ProgressRollupResponse(BaseModel):
    entity_id: UUID
    title: str
    task_count: int
    completed_tasks: int
    blocked_tasks: int
    calculated_progress: int

    class Config:
        from_attributes = True


class GoalRollupResponse(BaseModel):
    """Goal completion with per-objective breakdown."""

    goal: ProgressRollupResponse
    objectives: List[ProgressRollupResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True
