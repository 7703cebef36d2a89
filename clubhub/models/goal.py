"""Goal and objective models."""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from clubhub.database import Base
from clubhub.db.types import GUID


class Goal(Base):
    """Club goal, decomposed into objectives."""

    __tablename__ = "goals"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    club_id = Column(GUID(), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    club = relationship("Club", back_populates="goals")
    objectives = relationship("Objective", back_populates="goal", cascade="all, delete-orphan")


class Objective(Base):
    """Objective under a goal; tasks hang off objectives."""

    __tablename__ = "objectives"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    goal_id = Column(GUID(), ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True)
    club_id = Column(GUID(), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    goal = relationship("Goal", back_populates="objectives")
