"""Shared, mutex-guarded preferences: location, notification toggle and timestamp.

One Preferences object is handed to every component that reads or writes
location or notification state. Values persist in the preferences table.
"""

import logging
import threading
from pathlib import Path

from wxsync.config.schema import LocationConfig
from wxsync.errors import ConfigError, ConfigErrorKind
from wxsync.models.location import Location
from wxsync.storage import prefs_repo
from wxsync.storage.database import connect, open_database

logger = logging.getLogger(__name__)

KEY_LOCATION = "location"
KEY_LATITUDE = "coord_lat"
KEY_LONGITUDE = "coord_long"
KEY_NOTIFICATIONS_ENABLED = "enable_notifications"
KEY_LAST_NOTIFICATION = "last_notification"


class Preferences:
    def __init__(
        self,
        db_path: str | Path,
        default_location: LocationConfig | None = None,
        notifications_default: bool = True,
    ):
        self.db_path = str(db_path)
        self.notifications_default = notifications_default
        self._lock = threading.Lock()
        conn = open_database(self.db_path)
        try:
            if default_location is not None:
                self._seed_location(conn, default_location)
        finally:
            conn.close()

    def _seed_location(self, conn, default: LocationConfig) -> None:
        """Write the configured location only if none is stored yet."""
        prefs = prefs_repo.get_all_prefs(conn)
        if KEY_LOCATION in prefs or KEY_LATITUDE in prefs:
            return
        conn.execute("BEGIN IMMEDIATE")
        try:
            if default.query:
                prefs_repo.set_pref(conn, KEY_LOCATION, default.query)
            if default.latitude is not None and default.longitude is not None:
                prefs_repo.set_pref(conn, KEY_LATITUDE, repr(default.latitude))
                prefs_repo.set_pref(conn, KEY_LONGITUDE, repr(default.longitude))
            conn.execute("COMMIT")
        except BaseException:
            conn.execute("ROLLBACK")
            raise

    def _get(self, key: str) -> str | None:
        conn = connect(self.db_path)
        try:
            return prefs_repo.get_pref(conn, key)
        finally:
            conn.close()

    def _set(self, values: dict[str, str], remove: tuple[str, ...] = ()) -> None:
        conn = connect(self.db_path)
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                for key, value in values.items():
                    prefs_repo.set_pref(conn, key, value)
                if remove:
                    prefs_repo.delete_prefs(conn, *remove)
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise
        finally:
            conn.close()

    # --- Location ---

    def get_location(self) -> Location:
        with self._lock:
            conn = connect(self.db_path)
            try:
                prefs = prefs_repo.get_all_prefs(conn)
            finally:
                conn.close()
        lat = prefs.get(KEY_LATITUDE)
        lon = prefs.get(KEY_LONGITUDE)
        return Location(
            query=prefs.get(KEY_LOCATION) or None,
            latitude=float(lat) if lat is not None else None,
            longitude=float(lon) if lon is not None else None,
        )

    def require_location(self) -> Location:
        location = self.get_location()
        if not location.is_resolvable:
            raise ConfigError(
                ConfigErrorKind.LOCATION_UNRESOLVED,
                "no location name or coordinates configured",
            )
        return location

    def set_location_query(self, query: str) -> None:
        """Change the preferred location by name; stale coordinates are dropped."""
        with self._lock:
            self._set({KEY_LOCATION: query}, remove=(KEY_LATITUDE, KEY_LONGITUDE))
        logger.info("Preferred location set to %r", query)

    def set_coordinates(self, latitude: float, longitude: float) -> None:
        with self._lock:
            self._set({KEY_LATITUDE: repr(float(latitude)), KEY_LONGITUDE: repr(float(longitude))})
        logger.debug("Location coordinates set to %.4f,%.4f", latitude, longitude)

    def store_resolved_coordinates(
        self, query: str | None, latitude: float, longitude: float
    ) -> bool:
        """Store coordinates resolved for `query`, unless the location name has
        changed since the request was made. Returns True if stored."""
        with self._lock:
            current = self._get(KEY_LOCATION) or None
            if current != (query or None):
                logger.info(
                    "Location changed to %r while resolving %r, discarding coordinates",
                    current, query,
                )
                return False
            self._set({KEY_LATITUDE: repr(float(latitude)), KEY_LONGITUDE: repr(float(longitude))})
        return True

    def clear_coordinates(self) -> None:
        with self._lock:
            self._set({}, remove=(KEY_LATITUDE, KEY_LONGITUDE))

    # --- Notifications ---

    def notifications_enabled(self) -> bool:
        with self._lock:
            value = self._get(KEY_NOTIFICATIONS_ENABLED)
        if value is None:
            return self.notifications_default
        return value == "true"

    def set_notifications_enabled(self, enabled: bool) -> None:
        with self._lock:
            self._set({KEY_NOTIFICATIONS_ENABLED: "true" if enabled else "false"})

    def last_notification_ms(self) -> int:
        with self._lock:
            value = self._get(KEY_LAST_NOTIFICATION)
        return int(value) if value is not None else 0

    def set_last_notification_ms(self, timestamp_ms: int) -> None:
        with self._lock:
            self._set({KEY_LAST_NOTIFICATION: str(int(timestamp_ms))})
