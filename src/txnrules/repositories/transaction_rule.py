"""Transaction rule repository with user-scoped queries."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from txnrules.models.transaction_rule import TransactionRule
from txnrules.repositories.base import BaseRepository


class TransactionRuleRepository(BaseRepository[TransactionRule]):
    """Repository for TransactionRule model with user-scoped security."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, TransactionRule)

    async def list_by_user(self, user_id: UUID) -> list[TransactionRule]:
        """Get a user's rules in the order they are applied (oldest first)."""
        return await self.list_owned(user_id, TransactionRule.created_at.asc())

    async def get_by_user(self, user_id: UUID, rule_id: UUID) -> TransactionRule | None:
        return await self.get_owned(user_id, rule_id)

    async def name_exists(
        self, user_id: UUID, name: str, exclude_id: UUID | None = None
    ) -> bool:
        """Check whether the user already has a rule with this name."""
        query = select(TransactionRule.id).where(
            TransactionRule.user_id == user_id, TransactionRule.name == name
        )
        if exclude_id is not None:
            query = query.where(TransactionRule.id != exclude_id)
        result = await self.db.execute(query)
        return result.first() is not None
