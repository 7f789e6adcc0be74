"""Database store handles.

A Store is created once at startup, passed explicitly to every component
that needs the database, and closed at shutdown. Two backends:
- SQLiteStore: local file, one connection per transaction
- PostgresStore: psycopg2 ThreadedConnectionPool

Queries are written with "?" placeholders on both backends.
"""

from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Sequence

import psycopg2
import structlog
from psycopg2 import extras, pool

from crud_users.config.app_config import DatabaseConfig
from crud_users.errors import StoreUnavailableError

logger = structlog.get_logger(__name__)

Params = Sequence[Any]


class Transaction(ABC):
    """Statements executed inside a single store transaction."""

    @abstractmethod
    def execute(self, sql: str, params: Params = ()) -> int:
        """Execute one statement and return the affected row count."""

    @abstractmethod
    def fetch_all(self, sql: str, params: Params = ()) -> list[dict[str, Any]]:
        """Execute a query and return all rows as dicts."""

    @abstractmethod
    def execute_script(self, script: str) -> None:
        """Execute a script that may contain several statements."""

    def fetch_one(self, sql: str, params: Params = ()) -> dict[str, Any] | None:
        rows = self.fetch_all(sql, params)
        return rows[0] if rows else None


class Store(ABC):
    """Handle on the relational store."""

    @abstractmethod
    def transaction(self) -> Any:
        """Context manager yielding a Transaction.

        Commits when the block exits normally and rolls back otherwise.
        Driver errors are raised as StoreUnavailableError.
        """

    def fetch_all(self, sql: str, params: Params = ()) -> list[dict[str, Any]]:
        with self.transaction() as tx:
            return tx.fetch_all(sql, params)

    def fetch_one(self, sql: str, params: Params = ()) -> dict[str, Any] | None:
        with self.transaction() as tx:
            return tx.fetch_one(sql, params)

    def execute(self, sql: str, params: Params = ()) -> int:
        with self.transaction() as tx:
            return tx.execute(sql, params)

    def ping(self) -> None:
        """Run a trivial round-trip query.

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        self.fetch_one("SELECT 1 AS ok")

    def close(self) -> None:
        """Release held connections."""


# =============================================================================
# SQLITE
# =============================================================================


class SQLiteTransaction(Transaction):
    """Transaction on a connection opened with isolation_level=None.

    BEGIN is issued lazily. sqlite3's executescript() commits any open
    transaction before running, so a script must be the first thing in the
    transaction; its BEGIN is then sent as part of the script itself.
    """

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def _begin(self) -> None:
        if not self._conn.in_transaction:
            self._conn.execute("BEGIN")

    def execute(self, sql: str, params: Params = ()) -> int:
        self._begin()
        return self._conn.execute(sql, tuple(params)).rowcount

    def fetch_all(self, sql: str, params: Params = ()) -> list[dict[str, Any]]:
        self._begin()
        rows = self._conn.execute(sql, tuple(params)).fetchall()
        return [dict(row) for row in rows]

    def execute_script(self, script: str) -> None:
        if self._conn.in_transaction:
            raise RuntimeError(
                "execute_script must be the first statement of a SQLite transaction"
            )
        self._conn.executescript(f"BEGIN;\n{script}\n")

    def commit(self) -> None:
        if self._conn.in_transaction:
            self._conn.execute("COMMIT")


class SQLiteStore(Store):
    """SQLite-backed store.

    Connections are opened in autocommit mode and transactions are
    controlled explicitly, so DDL from a migration script and the
    bookkeeping insert commit or roll back together.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(
                f"Cannot create database directory {self.path.parent}: {e}"
            ) from e

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def transaction(self) -> Generator[SQLiteTransaction, None, None]:
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot open database {self.path}: {e}") from e

        try:
            tx = SQLiteTransaction(conn)
            yield tx
            tx.commit()
        except (sqlite3.Error, OverflowError) as e:
            # OverflowError: an int parameter outside SQLite's 64-bit range
            _rollback_sqlite(conn)
            raise StoreUnavailableError(str(e)) from e
        except BaseException:
            _rollback_sqlite(conn)
            raise
        finally:
            conn.close()

    def __repr__(self) -> str:
        return f"SQLiteStore(path={str(self.path)!r})"


def _rollback_sqlite(conn: sqlite3.Connection) -> None:
    if conn.in_transaction:
        conn.execute("ROLLBACK")


# =============================================================================
# POSTGRES
# =============================================================================


def _to_pyformat(sql: str) -> str:
    """Translate "?" placeholders to psycopg2's "%s"."""
    return sql.replace("?", "%s")


class PostgresTransaction(Transaction):
    def __init__(self, conn: Any):
        self._conn = conn

    def execute(self, sql: str, params: Params = ()) -> int:
        with self._conn.cursor() as cur:
            cur.execute(_to_pyformat(sql), tuple(params))
            return cur.rowcount

    def fetch_all(self, sql: str, params: Params = ()) -> list[dict[str, Any]]:
        with self._conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(_to_pyformat(sql), tuple(params))
            return [dict(row) for row in cur.fetchall()]

    def execute_script(self, script: str) -> None:
        with self._conn.cursor() as cur:
            cur.execute(script)


class PostgresStore(Store):
    """PostgreSQL-backed store with a thread-safe connection pool."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        try:
            self._pool = pool.ThreadedConnectionPool(
                config.min_connections,
                config.max_connections,
                host=config.host,
                port=config.port,
                user=config.user,
                password=config.password,
                dbname=config.name,
            )
        except psycopg2.Error as e:
            raise StoreUnavailableError(
                f"Cannot connect to postgres at {config.host}:{config.port}: {e}"
            ) from e
        logger.info(
            "postgres_pool_created",
            host=config.host,
            port=config.port,
            database=config.name,
            max_connections=config.max_connections,
        )

    @contextmanager
    def transaction(self) -> Generator[PostgresTransaction, None, None]:
        try:
            conn = self._pool.getconn()
        except (psycopg2.Error, pool.PoolError) as e:
            raise StoreUnavailableError(f"Cannot get connection from pool: {e}") from e

        try:
            yield PostgresTransaction(conn)
            conn.commit()
        except psycopg2.Error as e:
            _rollback_postgres(conn)
            raise StoreUnavailableError(str(e)) from e
        except BaseException:
            _rollback_postgres(conn)
            raise
        finally:
            self._pool.putconn(conn, close=bool(conn.closed))

    def close(self) -> None:
        self._pool.closeall()
        logger.info("postgres_pool_closed")

    def __repr__(self) -> str:
        return f"PostgresStore(host={self.config.host!r}, database={self.config.name!r})"


def _rollback_postgres(conn: Any) -> None:
    # A dead connection cannot be rolled back; the pool discards it on putconn
    if not conn.closed:
        conn.rollback()


def create_store(config: DatabaseConfig) -> Store:
    """Create the store described by the database config.

    Raises:
        ValueError: If the driver is not supported
        StoreUnavailableError: If the pool cannot connect
    """
    driver = config.driver.lower()
    if driver == "sqlite":
        store: Store = SQLiteStore(config.path)
    elif driver in ("postgres", "postgresql"):
        store = PostgresStore(config)
    else:
        raise ValueError(f"Unsupported DB_DRIVER '{config.driver}' (expected sqlite or postgres)")

    logger.info("store_created", store=repr(store))
    return store
