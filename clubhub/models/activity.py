"""Activity log model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String

from clubhub.database import Base
from clubhub.db.types import GUID, JSONBType


class ActivityLog(Base):
    """Tracked user action; feeds engagement analytics."""

    __tablename__ = "activity_logs"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    actor_id = Column(GUID(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    entity = Column(String(50), nullable=False, index=True)  # Entity type (e.g., "task", "club")
    entity_id = Column(GUID(), nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)  # e.g. "task.completed", "checklist.toggled"
    club_id = Column(GUID(), nullable=True, index=True)
    details = Column(JSONBType(), nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow, index=True)
