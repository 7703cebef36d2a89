"""Task model."""
import math
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from clubhub.database import Base
from clubhub.db.types import GUID, JSONBType
from clubhub.utils.dates import as_naive_utc


class TaskStatus(str, Enum):
    """Task lifecycle states."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    """Task priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AssigneeRole(str, Enum):
    """Role of a user assigned to a task."""

    OWNER = "owner"
    CONTRIBUTOR = "contributor"
    REVIEWER = "reviewer"


class SubtaskStatus(str, Enum):
    """Subtask state."""

    NOT_STARTED = "not_started"
    DONE = "done"


class DependencyRelation(str, Enum):
    """Directed relation from a task to another task."""

    BLOCKS = "blocks"
    BLOCKED_BY = "blocked_by"
    RELATED = "related"


class RecurrenceFrequency(str, Enum):
    """Recurrence rule frequency."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Task(Base):
    """Club task.

    Checklist items, subtasks, assignees, dependencies and comments are owned
    value collections stored as JSON arrays on the row, so every state change
    of a task is a single-row write.
    """

    __tablename__ = "tasks"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    club_id = Column(GUID(), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False, index=True)
    objective_id = Column(GUID(), ForeignKey("objectives.id", ondelete="CASCADE"), nullable=False, index=True)
    goal_id = Column(GUID(), ForeignKey("goals.id", ondelete="SET NULL"), nullable=True, index=True)

    status = Column(String(20), nullable=False, default=TaskStatus.NOT_STARTED.value, index=True)
    priority = Column(String(10), nullable=False, default=TaskPriority.MEDIUM.value, index=True)
    progress = Column(Integer, nullable=False, default=0)

    start_date = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    due_date = Column(DateTime(timezone=True), nullable=False, index=True)

    assignees = Column(JSONBType(), nullable=False, default=list)  # [{user_id, role, assigned_at, assigned_by}]
    checklist = Column(JSONBType(), nullable=False, default=list)  # [{id, text, completed, completed_by, completed_at}]
    subtasks = Column(JSONBType(), nullable=False, default=list)  # [{id, title, status, assignee_id, completed_at}]
    dependencies = Column(JSONBType(), nullable=False, default=list)  # [{task_id, relation}]
    comments = Column(JSONBType(), nullable=False, default=list)
    tags = Column(JSONBType(), nullable=False, default=list)

    recurrence_rule = Column(JSONBType(), nullable=True)
    occurrence_number = Column(Integer, nullable=False, default=1)
    parent_task_id = Column(GUID(), nullable=True, index=True)  # Weak reference, no FK

    blocked_reason = Column(Text, nullable=True)
    blocked_by = Column(GUID(), nullable=True)
    blocked_at = Column(DateTime(timezone=True), nullable=True)

    completed_at = Column(DateTime(timezone=True), nullable=True, index=True)
    completed_by = Column(GUID(), nullable=True)

    created_by = Column(GUID(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_overdue(self) -> bool:
        if self.due_date is None or self.status == TaskStatus.COMPLETED:
            return False
        return as_naive_utc(self.due_date) < datetime.utcnow()

    @property
    def days_remaining(self) -> int:
        if self.status == TaskStatus.COMPLETED or self.due_date is None:
            return 0
        seconds = (as_naive_utc(self.due_date) - datetime.utcnow()).total_seconds()
        return math.ceil(seconds / 86400)

