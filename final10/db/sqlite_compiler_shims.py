"""SQLite compilation shims for PostgreSQL-specific SQLAlchemy types.

Registers a compiler for JSONB when the active dialect is SQLite so that
declarative metadata can be created against the in-memory database used by
the test suite. JSONB operators are not emulated; JSON columns are stored as
text and round-trip through the generic JSON serializer.

Usage: imported for side-effects by final10.db.models.base.
"""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(element, compiler, **kw):  # pragma: no cover - trivial
    return "JSON"
