"""Activity log CRUD operations."""
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.crud.base import CRUDBase
from clubhub.models.activity import ActivityLog


class CRUDActivity(CRUDBase[ActivityLog, dict, dict]):
    """Activity log access; writes join the caller's transaction."""

    def record(
        self,
        db: AsyncSession,
        *,
        actor_id: Optional[UUID],
        action: str,
        entity: str,
        entity_id: Optional[UUID] = None,
        club_id: Optional[UUID] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> ActivityLog:
        """Stage an activity entry without committing."""
        entry = ActivityLog(
            actor_id=actor_id,
            action=action,
            entity=entity,
            entity_id=entity_id,
            club_id=club_id,
            details=details,
        )
        db.add(entry)
        return entry


activity = CRUDActivity(ActivityLog)
