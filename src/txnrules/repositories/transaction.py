"""Transaction repository with user- and item-scoped queries."""
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from txnrules.models.transaction import Transaction
from txnrules.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for Transaction model.

    Both reads return rows newest first with ``id`` as tie-break, so paging
    with ``skip``/``limit`` visits every transaction exactly once.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(db, Transaction)

    async def get_by_user(
        self, user_id: UUID, skip: int = 0, limit: int = 1000
    ) -> list[Transaction]:
        return await self.list_owned(
            user_id, Transaction.txn_date.desc(), skip=skip, limit=limit
        )

    async def get_by_item(self, user_id: UUID, item_id: UUID) -> list[Transaction]:
        """Get all transactions synced from one item."""
        result = await self.db.execute(
            self.owned(user_id)
            .where(Transaction.item_id == item_id)
            .order_by(Transaction.txn_date.desc(), Transaction.id)
        )
        return list(result.scalars().all())
