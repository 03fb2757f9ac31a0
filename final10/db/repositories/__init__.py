"""
Per-domain repository modules for database access.

Each module exposes plain functions taking a ``Session`` first and
keyword-only arguments after it.
"""
