"""
Pytest configuration and shared fixtures.
"""

import os
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from jobqueue.api.dependencies import get_job_store
from jobqueue.api.main import create_app
from jobqueue.constants import JobStatus
from jobqueue.db import (
    Base,
    InMemoryJobRepository,
    JobRepository,
    JobStore,
    create_session_factory,
    get_async_session,
)
from jobqueue.db.connection import get_test_engine
from jobqueue.lifecycle import JobLifecycleManager
from jobqueue.types.job import JobRecord

# Point at a PostgreSQL database to run the SQL tests against it;
# by default every test gets its own SQLite file.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def database_url(tmp_path) -> str:
    """Get the test database URL."""
    if TEST_DATABASE_URL:
        return TEST_DATABASE_URL
    return f"sqlite+aiosqlite:///{tmp_path / 'jobs.db'}"


@pytest_asyncio.fixture
async def async_engine(database_url: str) -> AsyncGenerator[AsyncEngine]:
    """Create an engine over a freshly created schema."""
    engine = get_test_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(async_engine)


@pytest.fixture
def sql_store(session_factory: async_sessionmaker[AsyncSession]) -> JobRepository:
    """SQL job store with no backoff between claim retries."""
    return JobRepository(
        session_factory,
        claim_max_attempts=5,
        claim_retry_backoff_seconds=0,
    )


@pytest.fixture
def memory_store() -> InMemoryJobRepository:
    return InMemoryJobRepository()


@pytest.fixture(params=["memory", "sql"])
def store(
    request: pytest.FixtureRequest,
    memory_store: InMemoryJobRepository,
    sql_store: JobRepository,
) -> JobStore:
    """Run a test once per store implementation."""
    return memory_store if request.param == "memory" else sql_store


@pytest.fixture
def lifecycle(store: JobStore) -> JobLifecycleManager:
    return JobLifecycleManager(store, default_max_retries=3)


@pytest.fixture
def make_job() -> Callable[..., JobRecord]:
    """
    Build pending job records with controlled creation times.

    ``offset`` is in seconds after a fixed base time, so claim order is
    deterministic regardless of clock resolution.
    """

    def _make_job(
        name: str = "job",
        offset: float = 0,
        job_id: str | None = None,
        **changes,
    ) -> JobRecord:
        created_at = BASE_TIME + timedelta(seconds=offset)
        job = JobRecord(
            id=job_id or str(uuid4()),
            name=name,
            payload=f"{name}-payload",
            status=JobStatus.PENDING,
            retry_count=0,
            max_retries=3,
            created_at=created_at,
            updated_at=created_at,
        )
        return job.evolve(**changes) if changes else job

    return _make_job


@pytest_asyncio.fixture
async def app(
    sql_store: JobRepository,
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[FastAPI]:
    """Create a FastAPI app wired to the test database."""

    async def _test_session() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app = create_app()
    app.dependency_overrides[get_job_store] = lambda: sql_store
    app.dependency_overrides[get_async_session] = _test_session

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
