"""Repository for persisted key/value preferences."""

import sqlite3


def get_pref(conn: sqlite3.Connection, key: str) -> str | None:
    row = conn.execute(
        "SELECT value FROM preferences WHERE key = ?", (key,)
    ).fetchone()
    if row is None:
        return None
    return row[0]


def set_pref(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        "INSERT INTO preferences (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP) "
        "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP",
        (key, value),
    )


def delete_prefs(conn: sqlite3.Connection, *keys: str) -> None:
    conn.executemany("DELETE FROM preferences WHERE key = ?", [(k,) for k in keys])


def get_all_prefs(conn: sqlite3.Connection) -> dict[str, str]:
    return {
        row[0]: row[1]
        for row in conn.execute("SELECT key, value FROM preferences").fetchall()
    }
