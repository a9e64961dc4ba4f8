"""Base repository with generic CRUD and user-scoped reads.

Every table this service reads is owned by a user. Reads that start from a
request go through the ``*_owned`` helpers so a row belonging to someone else
is indistinguishable from a missing one.
"""
from typing import Any, Generic, Type, TypeVar
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from txnrules.models.base import BaseModel

T = TypeVar("T", bound=BaseModel)


class BaseRepository(Generic[T]):
    """Generic repository; the ``*_owned`` helpers need a ``user_id`` column."""

    def __init__(self, db: AsyncSession, model: Type[T]):
        self.db = db
        self.model = model

    def owned(self, user_id: UUID) -> Select:
        """SELECT of the user's rows, for subclasses to refine."""
        return select(self.model).where(self.model.user_id == user_id)

    async def get_by_id(self, id: UUID) -> T | None:
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_owned(self, user_id: UUID, id: UUID) -> T | None:
        """Get a row only if it belongs to ``user_id``."""
        result = await self.db.execute(self.owned(user_id).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def list_owned(
        self, user_id: UUID, *order_by: Any, skip: int = 0, limit: int | None = None
    ) -> list[T]:
        """List the user's rows; ``id`` is always the final sort key."""
        query = self.owned(user_id).order_by(*order_by, self.model.id).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(self, obj: T) -> T:
        """Insert and commit a new row."""
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def update(self, id: UUID, data: dict) -> T | None:
        """Set the given columns on a row and commit; unknown keys are ignored."""
        obj = await self.get_by_id(id)
        if not obj:
            return None

        for key, value in data.items():
            if hasattr(obj, key):
                setattr(obj, key, value)

        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def delete(self, id: UUID) -> bool:
        obj = await self.get_by_id(id)
        if not obj:
            return False

        await self.db.delete(obj)
        await self.db.commit()
        return True
