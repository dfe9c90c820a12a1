"""Sync daemon: keeps the forecast table fresh in a background process.

Usage:
    python -m wxsync daemon              # run in the foreground
    python -m wxsync daemon --stop       # stop a running daemon
    python -m wxsync daemon --status     # show daemon stats
"""

import json
import logging
import os
import signal
import sys
import threading
import time
from datetime import UTC, datetime
from pathlib import Path

from wxsync.config.schema import AppConfig
from wxsync.sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)

STATE_SAVE_INTERVAL = 60
PID_DIR = Path("data")
PID_FILE = PID_DIR / "daemon.pid"
STATE_FILE = PID_DIR / "daemon_state.json"
LOG_DIR = Path("logs")
MAX_LOG_FILES = 20


class SyncDaemon:
    """Owns one SyncOrchestrator for the lifetime of the process."""

    def __init__(self, config: AppConfig, db_path: str = "data/wxsync.db"):
        self.config = config
        self.db_path = db_path
        self.orchestrator: SyncOrchestrator | None = None
        self._stop = threading.Event()
        self._started_at: str | None = None

    def start(self) -> None:
        self._check_not_already_running()
        self._write_pid()
        self._setup_signals()
        file_handler = self._attach_log_file()
        self._started_at = datetime.now(UTC).isoformat()

        logger.info(
            "Daemon started: interval=%.1fh pid=%d",
            self.config.sync.interval_hours, os.getpid(),
        )
        print(f"Sync daemon started (pid {os.getpid()}, every {self.config.sync.interval_hours}h)")

        try:
            self.orchestrator = SyncOrchestrator.from_config(self.config, self.db_path)
            self.orchestrator.initialize()
            self._loop()
        except KeyboardInterrupt:
            logger.info("Daemon interrupted by keyboard")
        finally:
            self._cleanup()
            logging.getLogger().removeHandler(file_handler)
            file_handler.close()

    def stop(self) -> None:
        self._stop.set()

    def _loop(self) -> None:
        while not self._stop.wait(STATE_SAVE_INTERVAL):
            self._save_state()

    def _attach_log_file(self) -> logging.Handler:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        handler = logging.FileHandler(LOG_DIR / f"daemon_{timestamp}.log")
        handler.setLevel(logging.INFO)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logging.getLogger().addHandler(handler)
        self._rotate_logs()
        return handler

    def _rotate_logs(self) -> None:
        logs = sorted(LOG_DIR.glob("daemon_*.log"))
        if len(logs) > MAX_LOG_FILES:
            for old in logs[: len(logs) - MAX_LOG_FILES]:
                old.unlink(missing_ok=True)

    def _setup_signals(self) -> None:
        def _stop(signum: int, frame: object) -> None:
            sig_name = signal.Signals(signum).name
            logger.info("Received %s, shutting down", sig_name)
            self._stop.set()

        signal.signal(signal.SIGTERM, _stop)
        signal.signal(signal.SIGINT, _stop)

    def _check_not_already_running(self) -> None:
        if not PID_FILE.exists():
            return
        try:
            pid = int(PID_FILE.read_text().strip())
            os.kill(pid, 0)
        except (ProcessLookupError, ValueError):
            # Stale PID file
            PID_FILE.unlink(missing_ok=True)
            return
        except PermissionError:
            print("Daemon may already be running, can't verify.")
            sys.exit(1)
        print(f"Daemon already running (pid {pid}). Stop it first:")
        print("   python -m wxsync daemon --stop")
        sys.exit(1)

    def _write_pid(self) -> None:
        PID_DIR.mkdir(parents=True, exist_ok=True)
        PID_FILE.write_text(str(os.getpid()))

    def _save_state(self) -> None:
        orch = self.orchestrator
        last = orch.last_outcome if orch else None
        state = {
            "pid": os.getpid(),
            "started_at": self._started_at,
            "interval_hours": self.config.sync.interval_hours,
            "total_syncs": orch.total_runs if orch else 0,
            "total_synced": orch.total_synced if orch else 0,
            "total_failed": orch.total_failed if orch else 0,
            "last_status": last.status.value if last else None,
            "last_error": last.error if last else None,
            "last_update": datetime.now(UTC).isoformat(),
        }
        PID_DIR.mkdir(parents=True, exist_ok=True)
        STATE_FILE.write_text(json.dumps(state, indent=2))

    def _cleanup(self) -> None:
        if self.orchestrator is not None:
            self.orchestrator.shutdown()
        PID_FILE.unlink(missing_ok=True)
        self._save_state()
        logger.info("Daemon stopped")
        print("Daemon stopped")


def stop_daemon(timeout: float = 30.0) -> int:
    """Stop a running daemon by sending SIGTERM."""
    if not PID_FILE.exists():
        print("No daemon running (no PID file found)")
        return 1

    try:
        pid = int(PID_FILE.read_text().strip())
    except ValueError:
        print("Corrupt PID file, removing")
        PID_FILE.unlink(missing_ok=True)
        return 1

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        print(f"Daemon not running (stale pid {pid}), cleaning up")
        PID_FILE.unlink(missing_ok=True)
        return 0

    print(f"Stopping daemon (pid {pid})...")
    os.kill(pid, signal.SIGTERM)

    for _ in range(int(timeout)):
        time.sleep(1)
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            print("Daemon stopped")
            PID_FILE.unlink(missing_ok=True)
            return 0

    print(f"Daemon didn't stop in {timeout:.0f}s")
    return 1


def daemon_status() -> int:
    """Print daemon status from state file."""
    if not STATE_FILE.exists():
        print("No daemon state found")
        return 1

    state = json.loads(STATE_FILE.read_text())
    pid = state.get("pid", "?")

    running = False
    try:
        os.kill(int(pid), 0)
        running = True
    except (ProcessLookupError, ValueError, TypeError, PermissionError):
        pass

    print(f"Daemon {'running' if running else 'stopped'}")
    print(f"  PID: {pid}")
    print(f"  Interval: {state.get('interval_hours', '?')}h")
    print(f"  Started: {state.get('started_at', '?')}")
    print(f"  Syncs: {state.get('total_syncs', 0)} "
          f"({state.get('total_synced', 0)} ok, {state.get('total_failed', 0)} failed)")
    print(f"  Last status: {state.get('last_status') or 'none'}")
    if state.get("last_error"):
        print(f"  Last error: {state['last_error']}")
    print(f"  Last update: {state.get('last_update', '?')}")
    return 0
