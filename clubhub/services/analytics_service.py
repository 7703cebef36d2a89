"""Analytics service for aggregating task and platform KPIs."""
from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.config import settings
from clubhub.core.exceptions import NotFoundError
from clubhub.crud.activity import activity as activity_crud
from clubhub.crud.club import club as club_crud
from clubhub.crud.club import goal as goal_crud
from clubhub.crud.club import objective as objective_crud
from clubhub.crud.task import task as task_crud
from clubhub.crud.user import user as user_crud
from clubhub.localization.helpers import get_translation
from clubhub.middleware.metrics import analytics_reports_total
from clubhub.models.activity import ActivityLog
from clubhub.models.club import Club, ClubStatus
from clubhub.models.task import SubtaskStatus, Task, TaskStatus
from clubhub.models.user import User
from clubhub.schemas.task import TaskFilter
from clubhub.services.assignment_service import assignment_service
from clubhub.services.progress_service import progress_service
from clubhub.utils.dates import as_naive_utc, iter_days, parse_datetime

logger = logging.getLogger(__name__)


def _one_decimal(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@dataclass
class ClubPerformanceDTO:
    """Club ranked by completed tasks."""

    club_id: UUID
    name: str
    member_count: int
    tasks_completed: int


@dataclass
class GrowthPointDTO:
    """Creations on one calendar day."""

    date: date
    count: int


@dataclass
class EngagementPointDTO:
    """Engagement counters on one calendar day."""

    date: date
    active_users: int
    new_registrations: int
    task_creations: int


@dataclass
class AnalyticsReportDTO:
    """Aggregated platform analytics."""

    window_start: date
    window_end: date
    total_tasks: int
    completed_tasks: int
    task_completion_rate: float
    average_tasks_per_user: float
    top_performing_clubs: List[ClubPerformanceDTO]
    user_growth: List[GrowthPointDTO]
    club_growth: List[GrowthPointDTO]
    user_engagement_metrics: List[EngagementPointDTO]
    partial: bool = False
    generated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class TaskReducer:
    """Task-level counters over one partition of the population.

    Reducers of disjoint partitions (for example one per club) can be
    combined with `merge`.
    """

    window_start: date
    window_end: date
    total: int = 0
    completed: int = 0
    assignments: int = 0
    assigned_users: Set[str] = field(default_factory=set)
    completions_by_club: Counter = field(default_factory=Counter)
    creations_by_day: Counter = field(default_factory=Counter)

    def _in_window(self, value: Optional[datetime]) -> bool:
        return value is not None and self.window_start <= value.date() <= self.window_end

    def add(self, task: Task) -> None:
        self.total += 1
        if task.status == TaskStatus.COMPLETED.value:
            self.completed += 1
            completed_at = as_naive_utc(task.completed_at)
            if self._in_window(completed_at):
                self.completions_by_club[task.club_id] += 1

        for entry in task.assignees or []:
            self.assignments += 1
            self.assigned_users.add(str(entry["user_id"]))

        created_at = as_naive_utc(task.created_at)
        if self._in_window(created_at):
            self.creations_by_day[created_at.date()] += 1

    def merge(self, other: "TaskReducer") -> "TaskReducer":
        """Combine two reducers over disjoint partitions of the same window."""
        return TaskReducer(
            window_start=self.window_start,
            window_end=self.window_end,
            total=self.total + other.total,
            completed=self.completed + other.completed,
            assignments=self.assignments + other.assignments,
            assigned_users=self.assigned_users | other.assigned_users,
            completions_by_club=self.completions_by_club + other.completions_by_club,
            creations_by_day=self.creations_by_day + other.creations_by_day,
        )

    @property
    def completion_rate(self) -> float:
        if not self.total:
            return 0.0
        return _one_decimal(self.completed * 100 / self.total)

    @property
    def average_tasks_per_user(self) -> float:
        if not self.assigned_users:
            return 0.0
        return _one_decimal(self.assignments / len(self.assigned_users))


@dataclass
class ProgressRollup:
    """Completion of the tasks filed under one goal or objective."""

    entity_id: UUID
    title: str
    task_count: int = 0
    completed_tasks: int = 0
    blocked_tasks: int = 0

    def add(self, task: Task) -> None:
        self.task_count += 1
        if task.status == TaskStatus.COMPLETED.value:
            self.completed_tasks += 1
        elif task.status == TaskStatus.BLOCKED.value:
            self.blocked_tasks += 1

    def merge(self, other: "ProgressRollup") -> "ProgressRollup":
        return ProgressRollup(
            entity_id=self.entity_id,
            title=self.title,
            task_count=self.task_count + other.task_count,
            completed_tasks=self.completed_tasks + other.completed_tasks,
            blocked_tasks=self.blocked_tasks + other.blocked_tasks,
        )

    @property
    def calculated_progress(self) -> int:
        return progress_service.percentage(self.completed_tasks, self.task_count)


@dataclass
class GoalRollupDTO:
    """Goal completion with a breakdown per objective."""

    goal: ProgressRollup
    objectives: List[ProgressRollup] = field(default_factory=list)


class _Budget:
    """Wall-clock budget checked between scan pages."""

    def __init__(self, seconds: Optional[float]):
        self.deadline = None if seconds is None else time.monotonic() + seconds
        self.exhausted = False

    def expired(self) -> bool:
        if self.deadline is not None and time.monotonic() >= self.deadline:
            self.exhausted = True
        return self.exhausted


class AnalyticsService:
    """Service for computing analytics and KPIs."""

    @staticmethod
    def resolve_window(
        window_days: Optional[int] = None,
        window_end: Optional[date] = None,
    ) -> Tuple[date, date]:
        """Inclusive (start, end) calendar-day window ending today by default."""
        days = max(1, window_days or settings.ANALYTICS_WINDOW_DAYS)
        end = window_end or datetime.utcnow().date()
        return end - timedelta(days=days - 1), end

    @staticmethod
    async def reduce_tasks(
        db: AsyncSession,
        reducer: TaskReducer,
        task_filter: Optional[TaskFilter],
        budget: _Budget,
    ) -> TaskReducer:
        async for page in task_crud.scan_filtered(
            db, task_filter=task_filter, page_size=settings.ANALYTICS_PAGE_SIZE
        ):
            for task in page:
                reducer.add(task)
            if budget.expired():
                break
        return reducer

    @staticmethod
    async def _count_by_day(
        db: AsyncSession,
        crud,
        column,
        start: datetime,
        end: datetime,
        budget: _Budget,
    ) -> Counter:
        counts: Counter = Counter()
        if budget.expired():
            return counts
        async for page in crud.scan(
            db,
            where=(column >= start, column < end),
            order_by=(column, crud.model.id),
            page_size=settings.ANALYTICS_PAGE_SIZE,
        ):
            for row in page:
                counts[as_naive_utc(getattr(row, column.key)).date()] += 1
            if budget.expired():
                break
        return counts

    @staticmethod
    async def _active_users_by_day(
        db: AsyncSession,
        start: datetime,
        end: datetime,
        budget: _Budget,
    ) -> Dict[date, Set[UUID]]:
        actors: Dict[date, Set[UUID]] = {}
        if budget.expired():
            return actors
        async for page in activity_crud.scan(
            db,
            where=(
                ActivityLog.timestamp >= start,
                ActivityLog.timestamp < end,
                ActivityLog.actor_id.isnot(None),
            ),
            order_by=(ActivityLog.timestamp, ActivityLog.id),
            page_size=settings.ANALYTICS_PAGE_SIZE,
        ):
            for entry in page:
                actors.setdefault(as_naive_utc(entry.timestamp).date(), set()).add(entry.actor_id)
            if budget.expired():
                break
        return actors

    @staticmethod
    async def top_clubs(
        db: AsyncSession,
        completions_by_club: Counter,
        limit: Optional[int] = None,
    ) -> List[ClubPerformanceDTO]:
        """Approved clubs ordered by completions desc, then name."""
        limit = limit or settings.ANALYTICS_TOP_CLUBS
        clubs = await club_crud.get_many(db, ids=[club_id for club_id, count in completions_by_club.items() if count])
        ranked = [
            ClubPerformanceDTO(
                club_id=club_obj.id,
                name=club_obj.name,
                member_count=len(club_obj.members or []),
                tasks_completed=completions_by_club[club_obj.id],
            )
            for club_obj in clubs.values()
            if club_obj.status == ClubStatus.APPROVED.value
        ]
        ranked.sort(key=lambda entry: (-entry.tasks_completed, entry.name))
        return ranked[:limit]

    @staticmethod
    async def aggregate(
        db: AsyncSession,
        task_filter: Optional[TaskFilter] = None,
        *,
        window_days: Optional[int] = None,
        window_end: Optional[date] = None,
        timeout: Optional[float] = None,
    ) -> AnalyticsReportDTO:
        """Build the analytics report for a filtered task population.

        The time budget is checked between pages; when it runs out the
        figures gathered so far are returned with `partial=True`.
        """
        start_day, end_day = AnalyticsService.resolve_window(window_days, window_end)
        start = datetime.combine(start_day, datetime.min.time())
        end = datetime.combine(end_day + timedelta(days=1), datetime.min.time())
        budget = _Budget(settings.ANALYTICS_TIMEOUT_SECONDS if timeout is None else timeout)

        reducer = await AnalyticsService.reduce_tasks(
            db, TaskReducer(window_start=start_day, window_end=end_day), task_filter, budget
        )
        users_by_day = await AnalyticsService._count_by_day(db, user_crud, User.created_at, start, end, budget)
        clubs_by_day = await AnalyticsService._count_by_day(db, club_crud, Club.created_at, start, end, budget)
        actors_by_day = await AnalyticsService._active_users_by_day(db, start, end, budget)
        top = await AnalyticsService.top_clubs(db, reducer.completions_by_club)

        days = list(iter_days(start_day, end_day))
        report = AnalyticsReportDTO(
            window_start=start_day,
            window_end=end_day,
            total_tasks=reducer.total,
            completed_tasks=reducer.completed,
            task_completion_rate=reducer.completion_rate,
            average_tasks_per_user=reducer.average_tasks_per_user,
            top_performing_clubs=top,
            user_growth=[GrowthPointDTO(date=day, count=users_by_day[day]) for day in days],
            club_growth=[GrowthPointDTO(date=day, count=clubs_by_day[day]) for day in days],
            user_engagement_metrics=[
                EngagementPointDTO(
                    date=day,
                    active_users=len(actors_by_day.get(day, ())),
                    new_registrations=users_by_day[day],
                    task_creations=reducer.creations_by_day[day],
                )
                for day in days
            ],
            partial=budget.exhausted,
        )

        analytics_reports_total.labels(str(report.partial).lower()).inc()
        if report.partial:
            logger.warning(
                "Analytics budget exhausted after %s tasks; returning partial report", reducer.total
            )
        return report

    @staticmethod
    def task_insights(task: Task, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Per-task overview, completion breakdown and engagement."""
        now = now or datetime.utcnow()
        checklist = task.checklist or []
        subtasks = task.subtasks or []
        comments = task.comments or []
        checklist_done = sum(1 for item in checklist if item.get("completed"))
        subtasks_done = sum(1 for item in subtasks if item.get("status") == SubtaskStatus.DONE.value)

        timestamps = [as_naive_utc(task.updated_at)]
        timestamps += [parse_datetime(comment.get("created_at")) for comment in comments]
        timestamps += [parse_datetime(item.get("completed_at")) for item in checklist]
        last_activity = max((value for value in timestamps if value is not None), default=None)

        due_date = as_naive_utc(task.due_date)
        is_completed = task.status == TaskStatus.COMPLETED.value

        return {
            "overview": {
                "status": task.status,
                "progress": task.progress,
                "priority": task.priority,
                "is_overdue": bool(due_date and not is_completed and due_date < now),
                "days_remaining": task.days_remaining,
                "primary_assignee": assignment_service.primary_assignee(task),
            },
            "completion": {
                "checklist_total": len(checklist),
                "checklist_completed": checklist_done,
                "checklist_percentage": _one_decimal(checklist_done * 100 / len(checklist)) if checklist else 0.0,
                "subtasks_total": len(subtasks),
                "subtasks_completed": subtasks_done,
                "subtasks_percentage": _one_decimal(subtasks_done * 100 / len(subtasks)) if subtasks else 0.0,
            },
            "engagement": {
                "comment_count": len(comments),
                "assignee_count": len(task.assignees or []),
                "last_activity": last_activity,
            },
        }

    @staticmethod
    async def objective_rollup(db: AsyncSession, objective_id: UUID) -> ProgressRollup:
        """Completed share of the tasks filed under one objective."""
        objective_obj = await objective_crud.get(db, objective_id)
        if objective_obj is None:
            raise NotFoundError(get_translation("errors.objective_not_found", objective_id=objective_id))

        rollup = ProgressRollup(entity_id=objective_obj.id, title=objective_obj.title)
        async for page in task_crud.scan_filtered(
            db, task_filter=TaskFilter(objective_id=objective_id), page_size=settings.ANALYTICS_PAGE_SIZE
        ):
            for task in page:
                rollup.add(task)
        return rollup

    @staticmethod
    async def goal_rollup(db: AsyncSession, goal_id: UUID) -> GoalRollupDTO:
        """Completed share of a goal's tasks, broken down by objective.

        Objectives without tasks are listed with zero progress.
        """
        goal_obj = await goal_crud.get(db, goal_id)
        if goal_obj is None:
            raise NotFoundError(get_translation("errors.goal_not_found", goal_id=goal_id))

        objectives = await objective_crud.get_multi(db, limit=1000, filters={"goal_id": goal_id})
        by_objective = {
            objective_obj.id: ProgressRollup(entity_id=objective_obj.id, title=objective_obj.title)
            for objective_obj in objectives
        }
        total = ProgressRollup(entity_id=goal_obj.id, title=goal_obj.title)
        async for page in task_crud.scan_filtered(
            db, task_filter=TaskFilter(goal_id=goal_id), page_size=settings.ANALYTICS_PAGE_SIZE
        ):
            for task in page:
                total.add(task)
                if task.objective_id in by_objective:
                    by_objective[task.objective_id].add(task)

        logger.info(
            "Goal %s rollup: %s/%s tasks completed", goal_id, total.completed_tasks, total.task_count
        )
        return GoalRollupDTO(
            goal=total,
            objectives=sorted(by_objective.values(), key=lambda rollup: (rollup.title, str(rollup.entity_id))),
        )

    @staticmethod
    async def overdue_tasks(
        db: AsyncSession,
        *,
        club_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[Task]:
        """Open tasks past their due date, soonest first."""
        return await task_crud.get_overdue(db, club_id=club_id, now=now, limit=limit)


analytics_service = AnalyticsService()
