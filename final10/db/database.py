"""
Database engine and session management.

Builds the SQLAlchemy engine from environment configuration with an
in-memory SQLite fallback for pytest runs and exposes the FastAPI session
dependency.
"""
import logging
import os
import sys
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

_SQLITE_MEMORY_URL = "sqlite+pysqlite:///:memory:"


def _get_database_url() -> Optional[str]:
    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")

    db_user = os.getenv("POSTGRES_USER")
    db_password = os.getenv("POSTGRES_PASSWORD")
    db_host = os.getenv("POSTGRES_HOST")
    db_port = os.getenv("POSTGRES_PORT", "5432")
    db_name = os.getenv("POSTGRES_DB")

    if not all([db_user, db_password, db_host, db_name]):
        return None
    return f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


def _is_pytest_runtime() -> bool:
    """Best-effort detection that we're executing under pytest.

    ``PYTEST_CURRENT_TEST`` is only set while a test runs, so module import
    during collection is detected through ``sys.modules`` instead.
    """
    if os.getenv("PYTEST_RUNNING") == "1":
        return True
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True
    return "pytest" in sys.modules


# Test override strategy:
# 1. FINAL10_TEST_DB wins when set.
# 2. Under pytest, force in-memory SQLite shared through StaticPool.
# 3. Otherwise DATABASE_URL / POSTGRES_* must be configured.
explicit_test_db = os.getenv("FINAL10_TEST_DB")

if explicit_test_db:
    DATABASE_URL = explicit_test_db
    _engine_kwargs = {"connect_args": {"check_same_thread": False}} if DATABASE_URL.startswith("sqlite") else {}
elif _is_pytest_runtime():
    DATABASE_URL = _SQLITE_MEMORY_URL
    _engine_kwargs = {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    }
else:
    DATABASE_URL = _get_database_url()
    if not DATABASE_URL:
        raise ValueError(
            "Missing database configuration: set DATABASE_URL or POSTGRES_USER, "
            "POSTGRES_PASSWORD, POSTGRES_HOST and POSTGRES_DB"
        )
    _engine_kwargs = {"pool_pre_ping": True}

engine = create_engine(DATABASE_URL, **_engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def is_sqlite() -> bool:
    return engine.dialect.name == "sqlite"


def init_sqlite_schema() -> None:
    """Create all tables on SQLite engines; Alembic owns the schema elsewhere."""
    if not is_sqlite():
        return
    from final10.db import models  # local import avoids a cycle at module load

    models.Base.metadata.create_all(bind=engine)
    logger.debug("sqlite_schema_ready: url=%s", DATABASE_URL)


def get_db():
    """Dependency to get a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
