"""
Storage for the records the access engine reads but does not own.

subscriptions holds the latest billing snapshot per organization;
org_permission_settings and org_specific_permissions hold per-org role
overrides. Reads go through SQLAlchemy Core inside get_db_session().
"""
from typing import Any, Dict, Optional
from contextlib import contextmanager
from sqlalchemy import create_engine, MetaData, Table, Column, Integer, String, DateTime, Boolean, Index, UniqueConstraint, text, true
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql import func
import logging
import os

from accessgate.core.config import settings

logger = logging.getLogger("accessgate.db")

metadata = MetaData()

# Pool options for server databases; sqlite gets a single shared connection
SERVER_POOL_OPTIONS: Dict[str, Any] = {
    "poolclass": QueuePool,
    "pool_size": 10,
    "max_overflow": 20,
    "pool_timeout": 30,
    "pool_recycle": 3600,
    "pool_pre_ping": True,
}

_engine = None
_SessionLocal = None


subscriptions = Table(
    "subscriptions",
    metadata,
    Column("organization_id", String(64), primary_key=True),
    Column("plan", String(32), nullable=False, server_default="free"),
    Column("status", String(32), nullable=False, server_default="trial"),
    Column("trial_ends_at", DateTime(timezone=True), nullable=True),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

org_permission_settings = Table(
    "org_permission_settings",
    metadata,
    Column("organization_id", String(64), primary_key=True),
    Column("use_global_permissions", Boolean, nullable=False, server_default=true()),
)

org_specific_permissions = Table(
    "org_specific_permissions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("organization_id", String(64), nullable=False),
    Column("role", String(32), nullable=False),
    Column("permission_key", String(64), nullable=False),
    Column("is_enabled", Boolean, nullable=False),
    UniqueConstraint("organization_id", "role", "permission_key", name="uq_org_specific_permission"),
    Index("ix_org_specific_permissions_org_role", "organization_id", "role"),
)


def get_database_url() -> Optional[str]:
    """TEST_DATABASE_URL from the process environment wins over settings."""
    return os.getenv("TEST_DATABASE_URL") or settings.DATABASE_URL


def engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        # in-memory databases live only as long as their one connection
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return dict(SERVER_POOL_OPTIONS)


def init_engine(database_url: Optional[str] = None):
    """Build the process-wide engine and session factory for database_url (or the configured URL)."""
    global _engine, _SessionLocal

    url = database_url or get_database_url()
    if not url:
        raise ValueError("DATABASE_URL is not configured; subscriptions and permission overrides need a database.")

    _engine = create_engine(url, **engine_options(url))
    _SessionLocal = sessionmaker(bind=_engine, autoflush=False, expire_on_commit=False)
    logger.info("database.engine_ready", extra={"event_type": "db_init"})
    return _engine


def dispose_engine() -> None:
    """Drop the global engine (tests switch databases between cases)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_engine():
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory():
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


@contextmanager
def get_db_session():
    """One unit of work: commit on success, roll back on any exception."""
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables():
    """Idempotent; existing tables are left untouched."""
    metadata.create_all(bind=get_engine())


def check_connection() -> bool:
    """Readiness probe: True when a trivial query round-trips."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("database.unreachable", extra={"error_code": type(exc).__name__})
        return False
    return True
