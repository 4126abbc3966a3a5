from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import FailureReason
from .model import AttendanceRecord, ScrapeFailure, SnapshotView, UpcomingItem


class AttendanceStore(Protocol):
    def replace(
        self,
        identity: str,
        display_name: str,
        records: Sequence[AttendanceRecord],
        upcoming: Sequence[UpcomingItem],
    ) -> Optional[int]:
        """Delete every record/upcoming row of ``identity`` and insert the new batch atomically.

        Returns the reference of the latest inserted record, or None for an empty batch.
        """

        raise NotImplementedError

    def upsert_snapshot(
        self,
        identity: str,
        record_ref: Optional[int],
        *,
        display_name: Optional[str] = None,
        fetched_at: Optional[datetime] = None,
    ) -> None:
        """``record_ref=None`` is the "done, nothing found" sentinel; only write it after a successful cycle."""

        raise NotImplementedError

    def replace_with_snapshot(
        self,
        identity: str,
        display_name: str,
        records: Sequence[AttendanceRecord],
        upcoming: Sequence[UpcomingItem],
        *,
        fetched_at: Optional[datetime] = None,
    ) -> Optional[int]:
        """``replace`` followed by ``upsert_snapshot`` as one transaction."""

        raise NotImplementedError

    def read(self, identity: str) -> SnapshotView:
        raise NotImplementedError

    def record_failure(self, identity: str, reason: FailureReason, message: str) -> None:
        raise NotImplementedError

    def recent_failures(self, identity: str, *, limit: int = 20) -> Sequence[ScrapeFailure]:
        raise NotImplementedError
