from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Optional, Sequence

import mysql.connector

from ..common.datetime_utils import now_local
from ..core.enums import FailureReason, RecordSource, SnapshotState
from ..core.exceptions import StorageError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord, ScrapeFailure, SnapshotView, UpcomingItem
from .repository import AttendanceStore

logger = logging.getLogger(__name__)


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        identity=r["identity"],
        display_name=r.get("display_name") or r["identity"],
        subject=r["subject"],
        present=int(r["present"]),
        absent=int(r["absent"]),
        total=int(r["total"]),
        percent=float(r.get("percent") or 0),
        margin=int(r["margin"]),
        required=int(r["required"]),
        recorded_at=r["recorded_at"],
        source=RecordSource(r.get("source") or RecordSource.SCRAPER.value),
    )


def _to_upcoming(r: dict) -> UpcomingItem:
    metadata: Any = r.get("metadata")
    if isinstance(metadata, (bytes, bytearray)):
        metadata = metadata.decode("utf-8")
    if isinstance(metadata, str):
        try:
            metadata = json.loads(metadata)
        except ValueError:
            metadata = {}
    return UpcomingItem(
        identity=r["identity"],
        external_id=r.get("external_id"),
        name=r.get("name") or "",
        start_time=r.get("start_time"),
        end_time=r.get("end_time"),
        metadata=metadata if isinstance(metadata, dict) else {},
        fetched_at=r["fetched_at"],
    )


class MySQLAttendanceStore(AttendanceStore):
    """Replace-on-write store for attendance rows and the per-identity snapshot pointer.

    Every public method runs in its own transaction (see ``db_cursor``); any
    mysql-connector error is rolled back and re-raised as :class:`StorageError`.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -- write path -------------------------------------------------------

    def _replace(
        self,
        cur,
        identity: str,
        display_name: str,
        records: Sequence[AttendanceRecord],
        upcoming: Sequence[UpcomingItem],
    ) -> Optional[int]:
        cur.execute("DELETE FROM attendance_records WHERE identity=%s", (identity,))
        deleted_records = cur.rowcount
        cur.execute("DELETE FROM upcoming_items WHERE identity=%s", (identity,))
        deleted_upcoming = cur.rowcount
        logger.debug(f"Deleted old rows for {identity} (records={deleted_records}, upcoming={deleted_upcoming})")

        latest_ref: Optional[int] = None
        for rec in records:
            cur.execute(
                """
                INSERT INTO attendance_records(
                    identity, display_name, subject, present, absent, total,
                    percent, margin, required, recorded_at, source
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    identity,
                    display_name,
                    rec.subject,
                    int(rec.present),
                    int(rec.absent),
                    int(rec.total),
                    float(rec.percent),
                    int(rec.margin),
                    int(rec.required),
                    rec.recorded_at,
                    rec.source.value,
                ),
            )
            latest_ref = int(cur.lastrowid)

        for item in upcoming:
            cur.execute(
                """
                INSERT INTO upcoming_items(identity, external_id, name, start_time, end_time, metadata, fetched_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    identity,
                    item.external_id,
                    item.name,
                    item.start_time,
                    item.end_time,
                    json.dumps(item.metadata),
                    item.fetched_at,
                ),
            )
        return latest_ref

    def _upsert_snapshot(
        self,
        cur,
        identity: str,
        record_ref: Optional[int],
        display_name: Optional[str],
        fetched_at: datetime,
    ) -> None:
        cur.execute(
            """
            INSERT INTO latest_snapshot(identity, record_id, display_name, fetched_at)
            VALUES(%s,%s,%s,%s)
            ON DUPLICATE KEY UPDATE
                record_id=VALUES(record_id),
                display_name=VALUES(display_name),
                fetched_at=VALUES(fetched_at)
            """,
            (identity, record_ref, display_name, fetched_at),
        )

    def replace(
        self,
        identity: str,
        display_name: str,
        records: Sequence[AttendanceRecord],
        upcoming: Sequence[UpcomingItem],
    ) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                return self._replace(cur, identity, display_name, records, upcoming)
        except mysql.connector.Error as exc:
            raise StorageError(f"replace failed for {identity}: {exc}") from exc

    def upsert_snapshot(
        self,
        identity: str,
        record_ref: Optional[int],
        *,
        display_name: Optional[str] = None,
        fetched_at: Optional[datetime] = None,
    ) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                self._upsert_snapshot(cur, identity, record_ref, display_name, fetched_at or now_local())
        except mysql.connector.Error as exc:
            raise StorageError(f"snapshot upsert failed for {identity}: {exc}") from exc

    def replace_with_snapshot(
        self,
        identity: str,
        display_name: str,
        records: Sequence[AttendanceRecord],
        upcoming: Sequence[UpcomingItem],
        *,
        fetched_at: Optional[datetime] = None,
    ) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                ref = self._replace(cur, identity, display_name, records, upcoming)
                self._upsert_snapshot(cur, identity, ref, display_name, fetched_at or now_local())
        except mysql.connector.Error as exc:
            raise StorageError(f"persisting cycle failed for {identity}: {exc}") from exc
        logger.info(f"Saved {len(records)} records and {len(upcoming)} upcoming items for {identity} (ref={ref})")
        return ref

    # -- read path --------------------------------------------------------

    def read(self, identity: str) -> SnapshotView:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "SELECT identity, record_id, display_name, fetched_at FROM latest_snapshot WHERE identity=%s",
                    (identity,),
                )
                snap = fetchone(cur)
                if not snap:
                    return SnapshotView.pending(identity)

                cur.execute(
                    """
                    SELECT identity, external_id, name, start_time, end_time, metadata, fetched_at
                    FROM upcoming_items
                    WHERE identity=%s
                    ORDER BY start_time ASC, item_id ASC
                    """,
                    (identity,),
                )
                upcoming = tuple(_to_upcoming(r) for r in fetchall(cur))

                if snap.get("record_id") is None:
                    return SnapshotView(
                        identity=identity,
                        state=SnapshotState.EMPTY,
                        display_name=snap.get("display_name") or identity,
                        fetched_at=snap["fetched_at"],
                        upcoming=upcoming,
                    )

                cur.execute(
                    """
                    SELECT record_id, identity, display_name, subject, present, absent, total,
                           percent, margin, required, recorded_at, source
                    FROM attendance_records
                    WHERE identity=%s
                    ORDER BY subject ASC, record_id ASC
                    """,
                    (identity,),
                )
                records = tuple(_to_record(r) for r in fetchall(cur))
        except mysql.connector.Error as exc:
            raise StorageError(f"read failed for {identity}: {exc}") from exc

        if not records:
            logger.warning(f"Snapshot for {identity} points at a record but no attendance rows exist")
            return SnapshotView.pending(identity)

        return SnapshotView(
            identity=identity,
            state=SnapshotState.SUCCESS,
            display_name=snap.get("display_name") or records[0].display_name,
            fetched_at=snap["fetched_at"],
            records=records,
            upcoming=upcoming,
        )

    # -- failure log ------------------------------------------------------

    def record_failure(self, identity: str, reason: FailureReason, message: str) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO scrape_failures(identity, reason, message, created_at) VALUES(%s,%s,%s,%s)",
                    (identity, reason.value, message, now_local()),
                )
        except mysql.connector.Error as exc:
            raise StorageError(f"recording failure for {identity} failed: {exc}") from exc

    def recent_failures(self, identity: str, *, limit: int = 20) -> Sequence[ScrapeFailure]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    SELECT identity, reason, message, created_at
                    FROM scrape_failures
                    WHERE identity=%s
                    ORDER BY created_at DESC, failure_id DESC
                    LIMIT %s
                    """,
                    (identity, int(limit)),
                )
                rows = fetchall(cur)
        except mysql.connector.Error as exc:
            raise StorageError(f"reading failures for {identity} failed: {exc}") from exc
        return [
            ScrapeFailure(
                identity=r["identity"],
                reason=FailureReason(r["reason"]),
                message=r.get("message") or "",
                created_at=r["created_at"],
            )
            for r in rows
        ]
