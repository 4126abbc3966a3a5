from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..attendance.model import AttendanceRecord, UpcomingItem
from ..attendance.repository import AttendanceStore
from ..common.datetime_utils import now_local, resolve_date_range
from ..common.validators import require_non_empty, require_secret
from ..core.constants import DEFAULT_FROM_DATE
from ..core.enums import AcquisitionStage, FailureReason, RecordSource
from ..core.exceptions import PortalError, ValidationError
from ..metrics.calculator import can_miss, percent, required
from ..portal.model import RawAttendanceRow, UpcomingClass
from ..portal.repository import PortalClient
from .model import AcquisitionResult

logger = logging.getLogger(__name__)


def build_records(
    identity: str, display_name: str, rows: Sequence[RawAttendanceRow], recorded_at: datetime
) -> list[AttendanceRecord]:
    records = []
    for row in rows:
        present = max(0, int(row.present))
        total = max(0, int(row.total))
        records.append(
            AttendanceRecord(
                identity=identity,
                display_name=display_name,
                subject=row.subject,
                present=present,
                absent=int(row.absent) if row.absent is not None else max(0, total - present),
                total=total,
                percent=round(row.percent, 2) if row.percent is not None else percent(present, total),
                margin=can_miss(present, total),
                required=required(present, total),
                recorded_at=recorded_at,
                source=RecordSource.SCRAPER,
            )
        )
    return records


def build_upcoming(identity: str, classes: Sequence[UpcomingClass], fetched_at: datetime) -> list[UpcomingItem]:
    return [
        UpcomingItem(identity=identity, name=cls.title, metadata=cls.as_metadata(), fetched_at=fetched_at)
        for cls in classes
    ]


class AcquisitionService:
    """Use case: one acquisition cycle for one identity.

    Authenticate, fetch the profile, fetch the attendance table, derive
    metrics, then replace the stored batch and move the snapshot pointer in a
    single transaction. Every failure is classified, logged, written to the
    failure log and returned; nothing is raised to the caller. A failed cycle
    never touches the snapshot, so readers keep the last known-good data.
    """

    def __init__(
        self,
        portal: PortalClient,
        store: AttendanceStore,
        *,
        clock: Callable[[], datetime] = now_local,
        default_from_date: str = DEFAULT_FROM_DATE,
    ):
        self._portal = portal
        self._store = store
        self._clock = clock
        self._default_from_date = default_from_date

    def run(
        self,
        identity: str,
        secret: str,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
    ) -> AcquisitionResult:
        stage = AcquisitionStage.AUTHENTICATING
        session = None
        try:
            identity = require_non_empty(identity, "identity")
            secret = require_secret(secret, "secret")
            start, end = resolve_date_range(
                from_date, to_date, today=self._clock().date(), default_from=self._default_from_date
            )
            logger.info(f"Scrape job started for {identity} ({start} -> {end})")

            session = self._portal.authenticate(identity, secret)

            stage = AcquisitionStage.FETCHING_PROFILE
            profile = self._portal.fetch_profile(session)

            stage = AcquisitionStage.FETCHING_ATTENDANCE
            rows = self._portal.fetch_attendance_table(session, start, end)
        except ValidationError as exc:
            return self._fail(identity, stage, FailureReason.INVALID_REQUEST, exc)
        except PortalError as exc:
            return self._fail(identity, stage, exc.reason, exc)
        except Exception as exc:
            logger.exception(f"Unexpected error while scraping {identity} at {stage.value}")
            return self._fail(identity, stage, FailureReason.PORTAL_ERROR, exc)
        finally:
            if session is not None:
                self._portal.close(session)

        try:
            stage = AcquisitionStage.COMPUTING
            now = self._clock()
            records = build_records(identity, profile.display_name, rows, now)
            upcoming = build_upcoming(identity, profile.upcoming, now)

            stage = AcquisitionStage.PERSISTING
            if not records:
                logger.warning(f"No attendance records found for {identity}; writing empty snapshot")
            ref = self._store.replace_with_snapshot(
                identity, profile.display_name, records, upcoming, fetched_at=now
            )
        except Exception as exc:
            return self._fail(identity, stage, FailureReason.STORAGE, exc)

        logger.info(
            f"Scrape job completed for {identity} (subjects={len(records)}, upcoming={len(upcoming)}, ref={ref})"
        )
        return AcquisitionResult.success(
            identity,
            finished_at=self._clock(),
            record_count=len(records),
            upcoming_count=len(upcoming),
        )

    def _fail(
        self, identity: str, stage: AcquisitionStage, reason: FailureReason, exc: BaseException
    ) -> AcquisitionResult:
        message = str(exc) or type(exc).__name__
        log = logger.warning if reason.is_transient else logger.error
        log(f"Scrape job failed for {identity} at {stage.value}: {reason.value}: {message}")

        if reason != FailureReason.INVALID_REQUEST:
            try:
                self._store.record_failure(identity, reason, message)
            except Exception as log_exc:
                logger.warning(f"Could not record scrape failure for {identity}: {log_exc}")

        return AcquisitionResult.failure(
            identity,
            stage=stage,
            reason=reason,
            message=message,
            finished_at=self._clock(),
        )
