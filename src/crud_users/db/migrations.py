"""Forward-only SQL migration runner.

Migration scripts are plain .sql files in a single directory, applied in
lexicographic filename order (use zero-padded prefixes: 0001_..., 0002_...).
Applied scripts are recorded by filename in the `migrations` table.

Each script runs in its own transaction together with its bookkeeping
insert: either both are persisted or neither is.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import structlog

from crud_users.db.store import Store
from crud_users.errors import MigrationFailure, StoreUnavailableError

logger = structlog.get_logger(__name__)

MIGRATION_SUFFIX = ".sql"

CREATE_MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS migrations (
    id VARCHAR(255) PRIMARY KEY,
    applied_at TIMESTAMP NOT NULL
)
"""


def list_migration_files(migrations_dir: Path) -> list[str]:
    """List migration filenames in apply order.

    Args:
        migrations_dir: Directory holding .sql scripts

    Returns:
        Sorted .sql filenames; empty if the directory does not exist
    """
    if not migrations_dir.is_dir():
        return []

    return sorted(
        entry.name
        for entry in migrations_dir.iterdir()
        if entry.is_file() and entry.name.endswith(MIGRATION_SUFFIX)
    )


def get_applied_migrations(store: Store) -> set[str]:
    """Get ids of migrations already recorded in the bookkeeping table."""
    rows = store.fetch_all("SELECT id FROM migrations")
    return {row["id"] for row in rows}


def _apply_migration(store: Store, migrations_dir: Path, filename: str) -> None:
    script = (migrations_dir / filename).read_text(encoding="utf-8")
    applied_at = datetime.now(timezone.utc).isoformat(sep=" ", timespec="seconds")

    with store.transaction() as tx:
        tx.execute_script(script)
        tx.execute(
            "INSERT INTO migrations (id, applied_at) VALUES (?, ?)",
            (filename, applied_at),
        )


def run_migrations(store: Store, migrations_dir: Path) -> list[str]:
    """Apply every migration script that has not been applied yet.

    Args:
        store: Store handle
        migrations_dir: Directory holding .sql scripts

    Returns:
        Filenames applied by this call, in order (empty when up to date)

    Raises:
        MigrationFailure: If any step fails. The schema may be behind but
            never has a half-applied script.
    """
    current: str | None = None
    applied: list[str] = []

    try:
        store.execute(CREATE_MIGRATIONS_TABLE)

        files = list_migration_files(migrations_dir)
        already_applied = get_applied_migrations(store)

        for filename in files:
            if filename in already_applied:
                continue

            current = filename
            logger.info("migration_applying", file=filename)
            _apply_migration(store, migrations_dir, filename)
            applied.append(filename)
            logger.info("migration_applied", file=filename)

        current = None

    except (StoreUnavailableError, OSError, UnicodeDecodeError) as e:
        logger.error(
            "migration_failed",
            file=current,
            migrations_dir=str(migrations_dir),
            applied=applied,
            error=str(e),
        )
        raise MigrationFailure(f"Migration failed: {e}", script=current) from e

    logger.info(
        "migrations_complete",
        applied=applied,
        known=len(files),
        migrations_dir=str(migrations_dir),
    )
    return applied
