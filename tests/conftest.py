"""
Shared fixtures: in-memory SQLite database and EVM test wallets.
"""

import pytest
from eth_account import Account
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.infra.models import Base
from src.infra.repository.user_repository import UserRepository


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def user_repository(session):
    return UserRepository(session)


@pytest.fixture
def wallet():
    """Test wallet for signing messages"""
    return Account.create()


@pytest.fixture
def other_wallet():
    return Account.create()


@pytest.fixture
async def registered_wallet(wallet, user_repository):
    await user_repository.create(wallet.address)
    return wallet
