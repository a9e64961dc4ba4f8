"""User repository.

Users have no owner column, so only the id-based base methods apply.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from txnrules.models.user import User
from txnrules.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, User)
