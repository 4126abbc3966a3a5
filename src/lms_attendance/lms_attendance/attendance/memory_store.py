from __future__ import annotations

import threading
from dataclasses import replace as dc_replace
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import FailureReason, SnapshotState
from .model import AttendanceRecord, LatestSnapshot, ScrapeFailure, SnapshotView, UpcomingItem
from .repository import AttendanceStore


class InMemoryAttendanceStore(AttendanceStore):
    """Process-local store with the same replace-on-write contract as the MySQL one.

    A single lock guards all three tables, so a reader sees either the whole
    previous batch or the whole new one.
    """

    def __init__(self, *, clock: Callable[[], datetime] = now_local):
        self._clock = clock
        self._lock = threading.RLock()
        self._records: dict[str, tuple[AttendanceRecord, ...]] = {}
        self._upcoming: dict[str, tuple[UpcomingItem, ...]] = {}
        self._snapshots: dict[str, LatestSnapshot] = {}
        self._failures: list[ScrapeFailure] = []
        self._next_id = 0

    def _replace(
        self,
        identity: str,
        display_name: str,
        records: Sequence[AttendanceRecord],
        upcoming: Sequence[UpcomingItem],
    ) -> Optional[int]:
        stored: list[AttendanceRecord] = []
        for rec in records:
            self._next_id += 1
            stored.append(dc_replace(rec, identity=identity, display_name=display_name, record_id=self._next_id))

        self._records[identity] = tuple(stored)
        self._upcoming[identity] = tuple(dc_replace(item, identity=identity) for item in upcoming)

        # Any snapshot still pointing at a deleted record falls back to NULL.
        snap = self._snapshots.get(identity)
        if snap is not None and snap.record_ref is not None:
            self._snapshots[identity] = dc_replace(snap, record_ref=None)

        return stored[-1].record_id if stored else None

    def replace(
        self,
        identity: str,
        display_name: str,
        records: Sequence[AttendanceRecord],
        upcoming: Sequence[UpcomingItem],
    ) -> Optional[int]:
        with self._lock:
            return self._replace(identity, display_name, records, upcoming)

    def upsert_snapshot(
        self,
        identity: str,
        record_ref: Optional[int],
        *,
        display_name: Optional[str] = None,
        fetched_at: Optional[datetime] = None,
    ) -> None:
        with self._lock:
            self._snapshots[identity] = LatestSnapshot(
                identity=identity,
                record_ref=record_ref,
                display_name=display_name,
                fetched_at=fetched_at or self._clock(),
            )

    def replace_with_snapshot(
        self,
        identity: str,
        display_name: str,
        records: Sequence[AttendanceRecord],
        upcoming: Sequence[UpcomingItem],
        *,
        fetched_at: Optional[datetime] = None,
    ) -> Optional[int]:
        with self._lock:
            ref = self._replace(identity, display_name, records, upcoming)
            self.upsert_snapshot(identity, ref, display_name=display_name, fetched_at=fetched_at)
            return ref

    def read(self, identity: str) -> SnapshotView:
        with self._lock:
            snap = self._snapshots.get(identity)
            records = self._records.get(identity, ())
            upcoming = self._upcoming.get(identity, ())

        if snap is None:
            return SnapshotView.pending(identity)
        if snap.record_ref is None:
            return SnapshotView(
                identity=identity,
                state=SnapshotState.EMPTY,
                display_name=snap.display_name or identity,
                fetched_at=snap.fetched_at,
                upcoming=upcoming,
            )
        if not records:
            return SnapshotView.pending(identity)
        return SnapshotView(
            identity=identity,
            state=SnapshotState.SUCCESS,
            display_name=snap.display_name or records[0].display_name,
            fetched_at=snap.fetched_at,
            records=tuple(sorted(records, key=lambda r: (r.subject, r.record_id or 0))),
            upcoming=upcoming,
        )

    def record_failure(self, identity: str, reason: FailureReason, message: str) -> None:
        with self._lock:
            self._failures.append(
                ScrapeFailure(identity=identity, reason=reason, message=message, created_at=self._clock())
            )

    def recent_failures(self, identity: str, *, limit: int = 20) -> Sequence[ScrapeFailure]:
        with self._lock:
            items = [f for f in self._failures if f.identity == identity]
        items.reverse()
        return items[:limit]
