"""CRUD operations for clubs, goals and objectives."""
from __future__ import annotations

from typing import Dict, Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.crud.base import CRUDBase
from clubhub.models.club import Club
from clubhub.models.goal import Goal, Objective


class CRUDClub(CRUDBase[Club, dict, dict]):
    """CRUD helpers for clubs."""

    async def get_many(self, db: AsyncSession, *, ids: Iterable[UUID]) -> Dict[UUID, Club]:
        """Load clubs by id with members, keyed by id."""
        ids = list(ids)
        if not ids:
            return {}
        result = await db.execute(select(Club).where(Club.id.in_(ids)))
        return {club.id: club for club in result.scalars().all()}


club = CRUDClub(Club)
goal = CRUDBase(Goal)
objective = CRUDBase(Objective)
