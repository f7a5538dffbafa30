"""
HealthFinder API — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Tests run against a throwaway SQLite file through aiosqlite, so the
       same SQL (aggregate subqueries, BEGIN IMMEDIATE locking) is exercised
       as in production without a PostgreSQL server.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── prepared_store: Connected store with empty tables, dropped afterwards
    │   ├── db_session: Real AsyncSession on the test store
    │   ├── clinic_factory: Inserts clinics with overridable attributes
    │   └── test_client: HTTPX AsyncClient bound to the FastAPI app
    └── review_payload: Valid review body
"""

import os
import tempfile

# Override settings for testing BEFORE any healthfinder imports
_TEST_DB_DIR = tempfile.mkdtemp(prefix="healthfinder_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR}/test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CONNECT_RETRY_ATTEMPTS"] = "1"
os.environ["DEFAULT_PAGE_SIZE"] = "20"
os.environ["MAX_PAGE_SIZE"] = "100"

from typing import Any, Dict, List  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from healthfinder.database import (  # noqa: E402
    Base,
    async_session_factory,
    connect_store,
    create_tables,
    dispose_engine,
    engine,
)
from healthfinder.models import Clinic  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_missing_clinic(mock_db_session):
            result = MagicMock()
            result.scalar_one_or_none.return_value = None
            mock_db_session.execute.return_value = result
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def prepared_store():
    """Connected store with freshly created tables; everything dropped after."""
    await connect_store()
    await create_tables()
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await dispose_engine()


@pytest_asyncio.fixture
async def db_session(prepared_store):
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def clinic_factory(prepared_store):
    """
    Inserts clinics directly, bypassing the seeding command.

    Usage:
        clinic = await clinic_factory(region="Uppsala")
        clinics = await clinic_factory.many(25, region="Stockholm")
    """

    def _values(index: int, overrides: Dict[str, Any]) -> Dict[str, Any]:
        values = {
            "region": "Stockholm",
            "clinic_operation": "Vårdcentral",
            "clinic_type": "Vårdcentral",
            "clinic_name": f"Clinic {index:03d}",
            "address": f"Testgatan {index}, 111 22 Stockholm",
            "open_hours": "Mån-Fre 08-17",
            "drop_in": "Uppgift saknas",
        }
        values.update(overrides)
        return values

    async def _insert(rows: List[Dict[str, Any]]) -> List[Clinic]:
        async with async_session_factory() as session:
            clinics = [Clinic(**row) for row in rows]
            session.add_all(clinics)
            await session.commit()
            return clinics

    class _Factory:
        counter = 0

        async def __call__(self, **overrides) -> Clinic:
            self.counter += 1
            return (await _insert([_values(self.counter, overrides)]))[0]

        async def many(self, count: int, **overrides) -> List[Clinic]:
            rows = []
            for _ in range(count):
                self.counter += 1
                rows.append(_values(self.counter, overrides))
            return await _insert(rows)

    return _Factory()


@pytest.fixture
def review_payload():
    """A review body that passes every bound."""
    return {
        "review": "Friendly staff and short waiting time.",
        "rating": 4,
        "name": "Anna",
        "title": "Good visit",
    }


@pytest_asyncio.fixture
async def test_client(prepared_store):
    """
    Provides an async HTTP test client for endpoint testing.

    ASGITransport does not run the lifespan; prepared_store performs the
    startup connect and table creation instead.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from healthfinder.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
