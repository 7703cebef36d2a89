"""User model."""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship

from clubhub.database import Base
from clubhub.db.types import GUID
from clubhub.models.club import club_member_association


class User(Base):
    """Platform member."""

    __tablename__ = "users"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow, index=True)

    clubs = relationship(
        "Club",
        secondary=club_member_association,
        back_populates="members",
        lazy="selectin",
    )
