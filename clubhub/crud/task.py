"""Task CRUD operations."""
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.crud.base import CRUDBase
from clubhub.models.task import Task, TaskStatus
from clubhub.schemas.task import TaskCreate, TaskFilter, TaskUpdate


class CRUDTask(CRUDBase[Task, TaskCreate, TaskUpdate]):
    """CRUD operations for Task."""

    @staticmethod
    def filter_clauses(task_filter: Optional[TaskFilter]) -> List[Any]:
        """Translate a TaskFilter into SQL where-clauses."""
        if task_filter is None:
            return []
        clauses = []
        if task_filter.club_id:
            clauses.append(Task.club_id == task_filter.club_id)
        if task_filter.objective_id:
            clauses.append(Task.objective_id == task_filter.objective_id)
        if task_filter.goal_id:
            clauses.append(Task.goal_id == task_filter.goal_id)
        if task_filter.created_from:
            clauses.append(Task.created_at >= task_filter.created_from)
        if task_filter.created_to:
            clauses.append(Task.created_at <= task_filter.created_to)
        return clauses

    async def scan_filtered(
        self,
        db: AsyncSession,
        *,
        task_filter: Optional[TaskFilter] = None,
        page_size: int = 500,
    ) -> AsyncIterator[List[Task]]:
        """Page through the tasks matching a filter."""
        async for page in self.scan(
            db,
            where=self.filter_clauses(task_filter),
            order_by=(Task.created_at, Task.id),
            page_size=page_size,
        ):
            yield page

    async def get_many(self, db: AsyncSession, *, ids: Iterable[UUID]) -> Dict[UUID, Task]:
        """Load tasks by id, keyed by id."""
        ids = list(ids)
        if not ids:
            return {}
        result = await db.execute(select(Task).where(Task.id.in_(ids)))
        return {task.id: task for task in result.scalars().all()}

    async def get_by_club(
        self,
        db: AsyncSession,
        *,
        club_id: UUID,
        status: Optional[TaskStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Task]:
        """List club tasks ordered by due date."""
        query = select(Task).where(Task.club_id == club_id)
        if status:
            query = query.where(Task.status == status.value)
        query = query.order_by(Task.due_date, Task.id).offset(skip).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_overdue(
        self,
        db: AsyncSession,
        *,
        club_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[Task]:
        """Open tasks whose due date has passed, soonest first."""
        now = now or datetime.utcnow()
        query = select(Task).where(
            Task.status != TaskStatus.COMPLETED.value,
            Task.due_date < now,
        )
        if club_id:
            query = query.where(Task.club_id == club_id)
        result = await db.execute(query.order_by(Task.due_date, Task.id).limit(limit))
        return list(result.scalars().all())


task = CRUDTask(Task)
