"""Initial schema: daily forecast table and preference store."""

import sqlite3

DDL = [
    # One row per forecast day; date is UTC midnight in epoch ms
    """
    CREATE TABLE IF NOT EXISTS weather (
        _id INTEGER PRIMARY KEY AUTOINCREMENT,
        date INTEGER NOT NULL,
        weather_id INTEGER NOT NULL,
        min REAL NOT NULL,
        max REAL NOT NULL,
        humidity REAL NOT NULL,
        pressure REAL NOT NULL,
        wind REAL NOT NULL,
        degrees REAL NOT NULL,
        UNIQUE(date) ON CONFLICT REPLACE
    )
    """,

    # Key/value preferences (location, notification state)
    """
    CREATE TABLE IF NOT EXISTS preferences (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
]


def up(conn: sqlite3.Connection) -> None:
    for stmt in DDL:
        conn.execute(stmt)
