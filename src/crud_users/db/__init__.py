"""Database module.

Provides:
- Store handles (SQLite file, PostgreSQL pool)
- Forward-only SQL migrations
- Repository functions for the users table
"""

from crud_users.db.migrations import run_migrations
from crud_users.db.store import PostgresStore, SQLiteStore, Store, create_store

__all__ = ["PostgresStore", "SQLiteStore", "Store", "create_store", "run_migrations"]
