"""Item repository with user-scoped queries."""
from uuid import UUID

from sqlalchemy import true
from sqlalchemy.ext.asyncio import AsyncSession

from txnrules.models.item import Item
from txnrules.repositories.base import BaseRepository


class ItemRepository(BaseRepository[Item]):
    """Repository for linked institution items."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Item)

    async def get_active_by_user(self, user_id: UUID) -> list[Item]:
        """Get only active items for a user, oldest first."""
        result = await self.db.execute(
            self.owned(user_id)
            .where(Item.is_active == true())
            .order_by(Item.created_at.asc(), Item.id)
        )
        return list(result.scalars().all())
