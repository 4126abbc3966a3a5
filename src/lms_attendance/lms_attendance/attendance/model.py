from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.enums import FailureReason, RecordSource, SnapshotState


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one subject's attendance for one identity and one acquisition cycle."""

    identity: str
    display_name: str
    subject: str
    present: int
    absent: int
    total: int
    percent: float
    margin: int
    required: int
    recorded_at: datetime
    source: RecordSource = RecordSource.SCRAPER
    record_id: Optional[int] = None


@dataclass(frozen=True)
class UpcomingItem:
    """Loosely structured dashboard entry; fields we do not model stay in ``metadata``."""

    identity: str
    name: str
    fetched_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)
    external_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


@dataclass(frozen=True)
class LatestSnapshot:
    """Pointer row: ``record_ref is None`` means the last successful cycle found nothing."""

    identity: str
    record_ref: Optional[int]
    fetched_at: datetime
    display_name: Optional[str] = None


@dataclass(frozen=True)
class ScrapeFailure:
    identity: str
    reason: FailureReason
    message: str
    created_at: datetime


@dataclass(frozen=True)
class SnapshotView:
    """Read-model handed to request handlers (pending / empty / success)."""

    identity: str
    state: SnapshotState
    display_name: Optional[str] = None
    fetched_at: Optional[datetime] = None
    records: tuple[AttendanceRecord, ...] = ()
    upcoming: tuple[UpcomingItem, ...] = ()

    @classmethod
    def pending(cls, identity: str) -> "SnapshotView":
        return cls(identity=identity, state=SnapshotState.PENDING)

    @property
    def is_pending(self) -> bool:
        return self.state == SnapshotState.PENDING

    @property
    def is_empty(self) -> bool:
        return self.state == SnapshotState.EMPTY
