"""SQLite connection manager with WAL mode and migration support."""

import importlib
import sqlite3
import threading
from pathlib import Path

MIGRATIONS_PACKAGE = "wxsync.storage.migrations"

_migrate_lock = threading.Lock()


def connect(db_path: str | Path, timeout: float = 30.0) -> sqlite3.Connection:
    """Open a SQLite connection with WAL mode enabled.

    isolation_level=None leaves transaction control to the caller
    (explicit BEGIN/COMMIT).
    """
    conn = sqlite3.connect(str(db_path), timeout=timeout, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def run_migrations(conn: sqlite3.Connection) -> list[str]:
    """Run all pending migrations in order. Returns list of applied migration names."""
    with _migrate_lock:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_versions ("
            "  version TEXT PRIMARY KEY,"
            "  applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP"
            ")"
        )

        applied = {
            row[0]
            for row in conn.execute("SELECT version FROM schema_versions").fetchall()
        }

        newly_applied = []
        for name in _discover_migrations():
            if name in applied:
                continue
            mod = importlib.import_module(f"{MIGRATIONS_PACKAGE}.{name}")
            conn.execute("BEGIN IMMEDIATE")
            try:
                mod.up(conn)
                conn.execute(
                    "INSERT OR IGNORE INTO schema_versions (version) VALUES (?)", (name,)
                )
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            newly_applied.append(name)

        return newly_applied


def open_database(db_path: str | Path) -> sqlite3.Connection:
    """Connect and bring the schema up to date."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = connect(db_path)
    run_migrations(conn)
    return conn


def _discover_migrations() -> list[str]:
    """Discover migration modules by naming convention v###_*.py."""
    migrations_dir = Path(__file__).parent / "migrations"
    return sorted(p.stem for p in migrations_dir.glob("v[0-9]*_*.py"))
