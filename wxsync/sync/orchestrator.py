"""Sync orchestration: fetch, replace the forecast table, maybe notify.

Every trigger (scheduler tick, cold-start check, immediate request) ends in
sync_now(). Concurrent calls are collapsed into one in-flight run whose
outcome is shared by all callers.
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from wxsync import dates
from wxsync.config.schema import AppConfig
from wxsync.errors import ConfigError, FetchError, NotificationError, StoreError
from wxsync.ingest.forecast_fetcher import ForecastFetcher
from wxsync.ingest.owm_client import OwmClient
from wxsync.models.common import utc_now_iso
from wxsync.models.forecast import ForecastBatch
from wxsync.models.sync import SyncOutcome, SyncStatus
from wxsync.preferences import Preferences
from wxsync.storage.forecast_store import ForecastStore
from wxsync.sync.notifications import LogNotifier, NotificationGate, Notifier, WebhookNotifier
from wxsync.sync.scheduler import PeriodicScheduler

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 3 * 60 * 60
DEFAULT_FLEX_SECONDS = DEFAULT_INTERVAL_SECONDS / 3


class SyncOrchestrator:
    def __init__(
        self,
        fetcher: ForecastFetcher,
        store: ForecastStore,
        gate: NotificationGate,
        notifier: Notifier | None = None,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        flex_seconds: float = DEFAULT_FLEX_SECONDS,
        max_workers: int = 2,
        clock: Callable[[], int] = dates.now_millis,
    ):
        self.fetcher = fetcher
        self.store = store
        self.gate = gate
        self.notifier = notifier or LogNotifier()
        self.clock = clock
        self.scheduler = PeriodicScheduler(self._scheduled_sync, interval_seconds, flex_seconds)
        self.cold_start: Future | None = None

        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="wxsync-sync")
        self._init_lock = threading.Lock()
        self._initialized = False
        self._flight_lock = threading.Lock()
        self._in_flight: Future | None = None
        self.total_runs = 0
        self.total_synced = 0
        self.total_failed = 0
        self.last_outcome: SyncOutcome | None = None

    @classmethod
    def from_config(cls, config: AppConfig, db_path: str | Path) -> "SyncOrchestrator":
        preferences = Preferences(
            db_path,
            default_location=config.location,
            notifications_default=config.notifications.enabled,
        )
        fetcher = ForecastFetcher(OwmClient.from_config(config.api), preferences, config.api)
        notifier: Notifier
        if config.notifications.webhook_url:
            notifier = WebhookNotifier(config.notifications.webhook_url)
        else:
            notifier = LogNotifier()
        return cls(
            fetcher,
            ForecastStore(db_path),
            NotificationGate(preferences),
            notifier,
            interval_seconds=config.sync.interval_seconds,
            flex_seconds=config.sync.flex_seconds,
            max_workers=config.sync.max_workers,
        )

    @property
    def preferences(self) -> Preferences:
        return self.fetcher.preferences

    @property
    def initialized(self) -> bool:
        with self._init_lock:
            return self._initialized

    # --- Triggers ---

    def initialize(self) -> bool:
        """Start periodic syncing and the cold-start check, once per instance.

        Returns True only for the call that performed the work.
        """
        with self._init_lock:
            if self._initialized:
                return False
            self._initialized = True
            self.scheduler.start()
            self.cold_start = self._executor.submit(self._sync_if_empty)
        logger.info("Sync initialized")
        return True

    def request_immediate_sync(self) -> "Future[SyncOutcome]":
        return self._executor.submit(self.sync_now)

    def sync_now(self) -> SyncOutcome:
        with self._flight_lock:
            shared = self._in_flight
            if shared is None:
                flight: Future = Future()
                self._in_flight = flight

        if shared is not None:
            logger.debug("Sync already in flight, sharing its outcome")
            return shared.result()

        try:
            outcome = self._run_sync()
        except BaseException as e:
            flight.set_exception(e)
            raise
        else:
            flight.set_result(outcome)
        finally:
            with self._flight_lock:
                self._in_flight = None
        self._record(outcome)
        return outcome

    def shutdown(self, wait: bool = True) -> None:
        self.scheduler.stop(timeout=5.0 if wait else 0.0)
        self._executor.shutdown(wait=wait, cancel_futures=True)

    # --- Internals ---

    def _sync_if_empty(self) -> SyncOutcome | None:
        try:
            count = self.store.count_from(dates.today(self.clock()))
        except StoreError as e:
            logger.warning("Cold-start check failed, syncing anyway: %s", e)
            count = 0
        if count:
            logger.debug("Cold-start check found %d rows, no sync needed", count)
            return None
        logger.info("No forecast from today onward, syncing immediately")
        return self.sync_now()

    def _record(self, outcome: SyncOutcome) -> None:
        with self._flight_lock:
            self.total_runs += 1
            if outcome.ok:
                self.total_synced += 1
            else:
                self.total_failed += 1
            self.last_outcome = outcome

    def _scheduled_sync(self) -> None:
        outcome = self.sync_now()
        logger.info("Scheduled sync finished: %s", outcome.status)

    def _run_sync(self) -> SyncOutcome:
        started_at = utc_now_iso()
        try:
            batch = self.fetcher.fetch(now_ms=self.clock())
            inserted = self.store.replace_all(batch.days)
        except (FetchError, ConfigError, StoreError) as e:
            logger.warning("Sync failed, keeping existing forecast: %s", e)
            return _failed(started_at, str(e))
        except Exception as e:
            logger.exception("Sync crashed")
            return _failed(started_at, f"unexpected error: {e}")

        notified = self._maybe_notify(batch)
        return SyncOutcome(
            status=SyncStatus.SYNCED,
            started_at=started_at,
            finished_at=utc_now_iso(),
            rows_inserted=inserted,
            notified=notified,
        )

    def _maybe_notify(self, batch: ForecastBatch) -> bool:
        now = self.clock()
        if not batch.days or not self.gate.should_notify(now):
            return False
        try:
            self.notifier.notify_new_weather(batch.days[0], batch)
        except NotificationError as e:
            logger.warning("New-weather notification not delivered: %s", e)
            return False
        self.gate.record_notified(now)
        return True


def _failed(started_at: str, error: str) -> SyncOutcome:
    return SyncOutcome(
        status=SyncStatus.FAILED,
        started_at=started_at,
        finished_at=utc_now_iso(),
        error=error,
    )
