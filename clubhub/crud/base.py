"""Generic async CRUD helpers shared by the model-specific modules."""
from typing import Any, AsyncIterator, Dict, Generic, List, Optional, Sequence, Type, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.database import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType")
UpdateSchemaType = TypeVar("UpdateSchemaType")


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Point reads/writes for a single model."""

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get(self, db: AsyncSession, id: UUID) -> Optional[ModelType]:
        """Get a single record by primary key."""
        return await db.get(self.model, id)

    async def get_multi(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[ModelType]:
        """Get multiple records with equality filters."""
        query = select(self.model)
        for field, value in (filters or {}).items():
            query = query.where(getattr(self.model, field) == value)
        result = await db.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all())

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: Union[CreateSchemaType, Dict[str, Any]],
    ) -> ModelType:
        """Create a record and commit."""
        if isinstance(obj_in, BaseModel):
            obj_in_data = obj_in.model_dump(exclude_unset=True, mode="python")
        else:
            obj_in_data = dict(obj_in)

        db_obj = self.model(**obj_in_data)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]],
    ) -> ModelType:
        """Apply field updates and commit."""
        if isinstance(obj_in, BaseModel):
            update_data = obj_in.model_dump(exclude_unset=True, mode="python")
        else:
            update_data = dict(obj_in)

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def remove(self, db: AsyncSession, *, id: UUID) -> Optional[ModelType]:
        """Delete a record by primary key."""
        db_obj = await db.get(self.model, id)
        if db_obj is not None:
            await db.delete(db_obj)
            await db.commit()
        return db_obj

    async def scan(
        self,
        db: AsyncSession,
        *,
        where: Sequence[Any] = (),
        order_by: Sequence[Any] = (),
        page_size: int = 500,
    ) -> AsyncIterator[List[ModelType]]:
        """Yield matching records page by page, in a stable order."""
        order = list(order_by) or [self.model.id]
        offset = 0
        while True:
            result = await db.execute(
                select(self.model).where(*where).order_by(*order).offset(offset).limit(page_size)
            )
            page = list(result.scalars().all())
            if not page:
                return
            yield page
            if len(page) < page_size:
                return
            offset += page_size
