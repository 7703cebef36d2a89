"""Webhook subscription model."""
import uuid
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.sql import func

from clubhub.database import Base
from clubhub.db.types import GUID


class TaskEvent(str, Enum):
    """Logical events emitted by the task engine."""

    TASK_CREATED = "task.created"
    TASK_ASSIGNED = "task.assigned"
    TASK_BLOCKED = "task.blocked"
    TASK_UNBLOCKED = "task.unblocked"
    TASK_STATUS_CHANGED = "task.status_changed"
    TASK_COMPLETED = "task.completed"
    TASK_COMMENTED = "task.commented"
    RECURRENCE_SPAWNED = "task.recurrence.spawned"


class WebhookSubscription(Base):
    """Webhook subscription model."""

    __tablename__ = "webhook_subscriptions"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    event = Column(String(50), nullable=False, index=True)
    url = Column(String(512), nullable=False)
    secret = Column(String(255), nullable=True)  # Secret for webhook signature
    active = Column(Boolean, default=True, nullable=False, index=True)
    last_status = Column(String(50), nullable=True)  # Last delivery status
    last_called_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
