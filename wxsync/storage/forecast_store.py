"""Forecast table: date-range reads, atomic replace, change notifications.

Each operation opens its own connection, so one store can be shared across
worker threads. WAL journaling lets readers keep seeing the last committed
generation while a replace is in progress.
"""

import logging
import sqlite3
import threading
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from wxsync import dates
from wxsync.errors import StoreError, StoreErrorKind
from wxsync.models.forecast import ForecastDay
from wxsync.storage.database import connect, open_database

logger = logging.getLogger(__name__)

TABLE_WEATHER = "weather"

_COLUMNS = "date, weather_id, min, max, humidity, pressure, wind, degrees"

ChangeListener = Callable[[str], None]


def _row_to_day(row: sqlite3.Row) -> ForecastDay:
    return ForecastDay(
        date=row["date"],
        condition_id=row["weather_id"],
        min_temp=row["min"],
        max_temp=row["max"],
        humidity=row["humidity"],
        pressure=row["pressure"],
        wind_speed=row["wind"],
        wind_direction=row["degrees"],
    )


def _day_to_params(day: ForecastDay) -> tuple:
    return (
        day.date,
        day.condition_id,
        day.min_temp,
        day.max_temp,
        day.humidity,
        day.pressure,
        day.wind_speed,
        day.wind_direction,
    )


class ForecastQuery:
    """Lazy, restartable read of forecast rows from a given day, ordered by date.

    Every iteration issues a fresh read against current state.
    """

    def __init__(self, store: "ForecastStore", date_inclusive: int):
        self._store = store
        self.date_inclusive = date_inclusive

    def __iter__(self) -> Iterator[ForecastDay]:
        with self._store._connection() as conn:
            try:
                cursor = conn.execute(
                    f"SELECT {_COLUMNS} FROM weather WHERE date >= ? ORDER BY date ASC",
                    (self.date_inclusive,),
                )
                for row in cursor:
                    yield _row_to_day(row)
            except sqlite3.Error as e:
                raise StoreError(StoreErrorKind.IO_FAILURE, f"query failed: {e}") from e

    def all(self) -> list[ForecastDay]:
        return list(self)


class ForecastStore:
    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._listeners: list[ChangeListener] = []
        self._listeners_lock = threading.Lock()
        try:
            conn = open_database(self.db_path)
        except sqlite3.Error as e:
            raise StoreError(StoreErrorKind.IO_FAILURE, f"cannot open {self.db_path}: {e}") from e
        conn.close()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = connect(self.db_path)
        except sqlite3.Error as e:
            raise StoreError(StoreErrorKind.IO_FAILURE, f"cannot open {self.db_path}: {e}") from e
        try:
            yield conn
        finally:
            conn.close()

    # --- Reads ---

    def query_from(self, date_inclusive: int) -> ForecastQuery:
        return ForecastQuery(self, date_inclusive)

    def query_today_onward(self, now_ms: int | None = None) -> ForecastQuery:
        return self.query_from(dates.today(now_ms))

    def query_by_date(self, date: int) -> ForecastDay:
        with self._connection() as conn:
            try:
                row = conn.execute(
                    f"SELECT {_COLUMNS} FROM weather WHERE date = ?", (date,)
                ).fetchone()
            except sqlite3.Error as e:
                raise StoreError(StoreErrorKind.IO_FAILURE, f"query failed: {e}") from e
        if row is None:
            raise StoreError(StoreErrorKind.NOT_FOUND, f"no forecast for {date}")
        return _row_to_day(row)

    def count_from(self, date_inclusive: int) -> int:
        with self._connection() as conn:
            try:
                return conn.execute(
                    "SELECT COUNT(*) FROM weather WHERE date >= ?", (date_inclusive,)
                ).fetchone()[0]
            except sqlite3.Error as e:
                raise StoreError(StoreErrorKind.IO_FAILURE, f"count failed: {e}") from e

    # --- Writes ---

    def replace_all(self, rows: Iterable[ForecastDay]) -> int:
        """Atomically swap the table contents for a new generation.

        Returns the number of rows inserted. Raises StoreError(INVALID_ARGUMENT)
        before touching the table if any date is not normalized or repeated.
        """
        rows = list(rows)
        seen: set[int] = set()
        for day in rows:
            if not dates.is_normalized(day.date):
                raise StoreError(
                    StoreErrorKind.INVALID_ARGUMENT,
                    f"date must be normalized to insert: {day.date}",
                )
            if day.date in seen:
                raise StoreError(
                    StoreErrorKind.INVALID_ARGUMENT, f"duplicate date in batch: {day.date}"
                )
            seen.add(day.date)

        with self._connection() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    deleted = self._delete_rows(conn)
                    inserted = self._insert_rows(conn, rows)
                    conn.execute("COMMIT")
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
            except sqlite3.Error as e:
                logger.error("Forecast replace rolled back: %s", e)
                raise StoreError(StoreErrorKind.IO_FAILURE, f"replace failed: {e}") from e

        logger.info("Replaced forecast generation: %d deleted, %d inserted", deleted, inserted)
        if deleted:
            self._notify_change()
        if inserted:
            self._notify_change()
        return inserted

    def delete_all(self) -> int:
        with self._connection() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    deleted = self._delete_rows(conn)
                    conn.execute("COMMIT")
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
            except sqlite3.Error as e:
                raise StoreError(StoreErrorKind.IO_FAILURE, f"delete failed: {e}") from e
        if deleted:
            self._notify_change()
        return deleted

    def _delete_rows(self, conn: sqlite3.Connection) -> int:
        return conn.execute("DELETE FROM weather").rowcount

    def _insert_rows(self, conn: sqlite3.Connection, rows: list[ForecastDay]) -> int:
        inserted = 0
        for day in rows:
            conn.execute(
                f"INSERT INTO weather ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                _day_to_params(day),
            )
            inserted += 1
        return inserted

    # --- Change notification ---

    def subscribe(self, listener: ChangeListener) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify_change(self) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(TABLE_WEATHER)
            except Exception:
                logger.exception("Change listener %r failed", listener)
