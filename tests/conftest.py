"""
Pytest configuration and fixtures for Circle Ledger tests
"""

import os

# Keep test runs off the filesystem and away from Sentry
os.environ["LOG_DIR"] = ""
os.environ["SENTRY_DSN"] = ""

import httpx
import pytest
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from ledger.database.engine import Database
from ledger.services.ledger_service import LedgerService


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def database() -> AsyncGenerator[Database, None]:
    """
    Fresh in-memory database with all tables
    """
    db = Database(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await db.create_tables()

    yield db

    await db.drop_tables()
    await db.dispose()


@pytest.fixture(scope="function")
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """
    Create test database session
    """
    async with database.session() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
def ledger(database) -> LedgerService:
    return LedgerService(database)


@pytest.fixture(scope="function")
async def client(ledger) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    HTTP client talking to the app in-process
    """
    from api_server import create_app

    app = create_app(ledger)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
