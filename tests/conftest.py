import os
import sys
import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

sys.path.append(str(Path(__file__).parents[1] / "src"))

_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="txnrules-tests-"))

# Settings are read at import time; a file-backed SQLite DB keeps every
# connection on the same data.
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DB_DIR / 'app.db'}")
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("LOG_JSON", "false")

from txnrules.db.session import get_db
from txnrules.main import app

TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    f"sqlite+aiosqlite:///{_TEST_DB_DIR / 'test.db'}",
)

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def setup_database():
    """Create tables for tests that need the database, and drop them after.

    Not autouse, so the pure rule-engine unit tests run without a database.
    """
    from txnrules.models.base import BaseModel

    async with test_engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.drop_all)

    await test_engine.dispose()


@pytest.fixture
async def db_session(setup_database):
    """Provide test database session with fresh connection per test."""
    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def test_user(db_session: AsyncSession):
    """Create a regular user."""
    from txnrules.models.user import User
    from txnrules.repositories.user import UserRepository

    repo = UserRepository(db_session)
    return await repo.create(User(email="testuser@example.com", full_name="Test User"))


@pytest.fixture
async def admin_user(db_session: AsyncSession):
    """Create a superuser."""
    from txnrules.models.user import User
    from txnrules.repositories.user import UserRepository

    repo = UserRepository(db_session)
    return await repo.create(
        User(email="admin@example.com", full_name="Admin User", is_superuser=True)
    )


@pytest.fixture
async def auth_headers(test_user):
    """Provide authentication headers with valid JWT token."""
    from txnrules.core.security import create_access_token

    token = create_access_token(user_id=test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_headers(admin_user):
    """Provide authentication headers for the superuser."""
    from txnrules.core.security import create_access_token

    token = create_access_token(user_id=admin_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(db_session: AsyncSession):
    """Provide test client with database override."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_item(db_session: AsyncSession):
    """Factory for linked items."""
    from txnrules.models.item import Item
    from txnrules.repositories.item import ItemRepository

    repo = ItemRepository(db_session)
    counter = {"n": 0}

    async def _make(user, institution_name: str = "Test Bank"):
        counter["n"] += 1
        return await repo.create(
            Item(
                user_id=user.id,
                provider_item_id=f"item-{counter['n']}-{user.id}",
                institution_name=institution_name,
            )
        )

    return _make


@pytest.fixture
def make_transaction(db_session: AsyncSession):
    """Factory for transactions (amounts: expenses negative)."""
    from txnrules.models.transaction import Transaction
    from txnrules.repositories.transaction import TransactionRepository

    repo = TransactionRepository(db_session)

    async def _make(
        user,
        item,
        name: str,
        amount: str,
        merchant_name: str | None = None,
        account_id: str = "acc_1",
        primary_category: str | None = "GENERAL_MERCHANDISE",
        txn_date: date = date(2024, 1, 15),
    ):
        return await repo.create(
            Transaction(
                user_id=user.id,
                item_id=item.id,
                account_id=account_id,
                txn_date=txn_date,
                name=name,
                merchant_name=merchant_name,
                amount=Decimal(amount),
                primary_category=primary_category,
            )
        )

    return _make
