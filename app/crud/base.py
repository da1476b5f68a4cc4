"""
Shared data access for SQLModel tables

Subclasses add the domain queries; everything here works on any table with
a string `id` and a `created_at` column. Query conditions are passed as
SQLAlchemy column expressions, e.g. `Job.employer_id == employer_id`.
Nothing here commits: callers own the transaction.
"""
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar
from sqlalchemy import Select, select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from app.models.base import utcnow

ModelType = TypeVar("ModelType", bound=SQLModel)


def _plain(value: Any) -> Any:
    # enum columns are stored as their string value
    return value.value if isinstance(value, Enum) else value


def _as_values(obj_in: SQLModel | Dict[str, Any], *, partial: bool) -> Dict[str, Any]:
    if isinstance(obj_in, dict):
        return dict(obj_in)
    return obj_in.model_dump(exclude_unset=partial)


class CRUDBase(Generic[ModelType]):

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def _select(self, conditions: Sequence[Any] = ()) -> Select:
        return select(self.model).where(*conditions)

    async def get(self, db: AsyncSession, id: str) -> Optional[ModelType]:
        return await db.get(self.model, id)

    async def get_by(self, db: AsyncSession, *conditions: Any) -> Optional[ModelType]:
        """First row matching every condition, newest first"""
        result = await db.execute(
            self._select(conditions).order_by(self.model.created_at.desc()).limit(1)
        )
        return result.scalars().first()

    async def get_multi(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100,
        order_by: Any = None,
        filters: Sequence[Any] = (),
    ) -> List[ModelType]:
        ordering = order_by if order_by is not None else self.model.created_at.desc()
        query = self._select(filters).order_by(ordering).offset(skip).limit(limit)
        return list((await db.execute(query)).scalars().all())

    async def count(self, db: AsyncSession, filters: Sequence[Any] = ()) -> int:
        query = select(func.count()).select_from(self.model).where(*filters)
        return (await db.execute(query)).scalar() or 0

    async def create(self, db: AsyncSession, *, obj_in: SQLModel | Dict[str, Any]) -> ModelType:
        values = _as_values(obj_in, partial=False)
        db_obj = self.model(**{field: _plain(value) for field, value in values.items()})
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: SQLModel | Dict[str, Any],
    ) -> ModelType:
        """
        Apply a partial update

        Fields left unset, or explicitly None, keep their stored value.
        `updated_at` is bumped on tables that have it.
        """
        changes = {
            field: _plain(value)
            for field, value in _as_values(obj_in, partial=True).items()
            if value is not None
        }
        for field, value in changes.items():
            setattr(db_obj, field, value)
        if hasattr(db_obj, "updated_at"):
            db_obj.updated_at = utcnow()

        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def delete(self, db: AsyncSession, *, id: str) -> bool:
        db_obj = await self.get(db, id)
        if db_obj is None:
            return False
        await db.delete(db_obj)
        await db.flush()
        return True
