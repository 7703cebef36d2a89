"""Analytics API endpoints."""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.api.v1.tasks import to_response
from clubhub.database import get_db
from clubhub.schemas.analytics import (
    AnalyticsReportResponse,
    GoalRollupResponse,
    ProgressRollupResponse,
    TaskInsightsResponse,
)
from clubhub.schemas.task import TaskFilter, TaskResponse
from clubhub.services.analytics_service import analytics_service
from clubhub.services.task_service import task_service

router = APIRouter()


@router.get("/report", response_model=AnalyticsReportResponse)
async def get_report(
    club_id: Optional[UUID] = None,
    objective_id: Optional[UUID] = None,
    goal_id: Optional[UUID] = None,
    created_from: Optional[datetime] = None,
    created_to: Optional[datetime] = None,
    window_days: Optional[int] = Query(default=None, ge=1, le=366),
    window_end: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
):
    """Aggregated completion, growth and engagement figures."""
    task_filter = TaskFilter(
        club_id=club_id,
        objective_id=objective_id,
        goal_id=goal_id,
        created_from=created_from,
        created_to=created_to,
    )
    report = await analytics_service.aggregate(
        db, task_filter, window_days=window_days, window_end=window_end
    )
    return AnalyticsReportResponse.model_validate(report)


@router.get("/tasks/overdue", response_model=List[TaskResponse])
async def list_overdue_tasks(
    club_id: Optional[UUID] = None,
    limit: int = Query(default=100, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Open tasks past their due date."""
    tasks = await analytics_service.overdue_tasks(db, club_id=club_id, limit=limit)
    return [to_response(task_obj) for task_obj in tasks]


@router.get("/tasks/{task_id}", response_model=TaskInsightsResponse)
async def get_task_insights(task_id: UUID, db: AsyncSession = Depends(get_db)):
    """Per-task analytics."""
    task_obj = await task_service.get_task(db, task_id)
    insights = analytics_service.task_insights(task_obj)
    return TaskInsightsResponse(task_id=task_obj.id, **insights)


@router.get("/goals/{goal_id}", response_model=GoalRollupResponse)
async def get_goal_rollup(goal_id: UUID, db: AsyncSession = Depends(get_db)):
    """Completed share of a goal's tasks, per objective."""
    rollup = await analytics_service.goal_rollup(db, goal_id)
    return GoalRollupResponse.model_validate(rollup)


@router.get("/objectives/{objective_id}", response_model=ProgressRollupResponse)
async def get_objective_rollup(objective_id: UUID, db: AsyncSession = Depends(get_db)):
    rollup = await analytics_service.objective_rollup(db, objective_id)
    return ProgressRollupResponse.model_validate(rollup)
