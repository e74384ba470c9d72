"""
Database module.
Contains database connection, models, and job store implementations.
"""

from jobqueue.db.connection import (
    close_db,
    create_schema,
    create_session_factory,
    get_async_session,
    get_engine,
    get_session_factory,
    init_db,
)
from jobqueue.db.memory import InMemoryJobRepository
from jobqueue.db.models import Base, Job
from jobqueue.db.repository import JobRepository
from jobqueue.db.store import JobStore

__all__ = [
    "get_async_session",
    "get_session_factory",
    "create_session_factory",
    "create_schema",
    "get_engine",
    "init_db",
    "close_db",
    "Job",
    "Base",
    "JobStore",
    "JobRepository",
    "InMemoryJobRepository",
]
