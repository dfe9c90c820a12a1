"""Sync run outcome models."""

from dataclasses import dataclass
from enum import StrEnum


class SyncStatus(StrEnum):
    SYNCED = "synced"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncOutcome:
    status: SyncStatus
    started_at: str
    finished_at: str
    rows_inserted: int = 0
    notified: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == SyncStatus.SYNCED
