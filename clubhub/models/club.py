"""Club domain models."""
from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Text
from sqlalchemy.orm import relationship

from clubhub.database import Base
from clubhub.db.types import GUID


class ClubStatus(str, Enum):
    """Club approval state."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Association table linking users to clubs
club_member_association = Table(
    "club_members",
    Base.metadata,
    Column(
        "club_id",
        GUID(),
        ForeignKey("clubs.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "user_id",
        GUID(),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "joined_at",
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    ),
)


class Club(Base):
    """Club entity."""

    __tablename__ = "clubs"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ClubStatus.PENDING.value, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow, index=True)

    members = relationship(
        "User",
        secondary=club_member_association,
        back_populates="clubs",
        lazy="selectin",
    )
    goals = relationship("Goal", back_populates="club", cascade="all, delete-orphan")
