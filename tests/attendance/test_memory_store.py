from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from lms_attendance.attendance.memory_store import InMemoryAttendanceStore
from lms_attendance.attendance.model import AttendanceRecord, UpcomingItem
from lms_attendance.core.enums import FailureReason, SnapshotState


def _record(subject: str, present: int, total: int, at: datetime) -> AttendanceRecord:
    return AttendanceRecord(
        identity="21MB001",
        display_name="Asha Kumar",
        subject=subject,
        present=present,
        absent=total - present,
        total=total,
        percent=round(present / total * 100, 2) if total else 0.0,
        margin=0,
        required=0,
        recorded_at=at,
    )


@pytest.fixture
def store(clock):
    return InMemoryAttendanceStore(clock=clock)


def test_unknown_identity_is_pending(store):
    view = store.read("21MB001")

    assert view.state == SnapshotState.PENDING
    assert view.records == ()


def test_replace_with_snapshot_reads_back_sorted_batch(store, fixed_now):
    batch = [_record("Physiology", 10, 20, fixed_now), _record("Anatomy", 22, 29, fixed_now)]
    upcoming = [UpcomingItem(identity="21MB001", name="Anatomy Lecture", fetched_at=fixed_now, metadata={"time": "10:00"})]

    ref = store.replace_with_snapshot("21MB001", "Asha Kumar", batch, upcoming, fetched_at=fixed_now)

    view = store.read("21MB001")
    assert view.state == SnapshotState.SUCCESS
    assert view.display_name == "Asha Kumar"
    assert view.fetched_at == fixed_now
    assert [r.subject for r in view.records] == ["Anatomy", "Physiology"]
    assert ref == max(r.record_id for r in view.records)
    assert [u.name for u in view.upcoming] == ["Anatomy Lecture"]


def test_empty_batch_is_distinct_from_pending(store, fixed_now):
    ref = store.replace_with_snapshot("21MB001", "Asha Kumar", [], [], fetched_at=fixed_now)

    view = store.read("21MB001")
    assert ref is None
    assert view.state == SnapshotState.EMPTY
    assert view.is_empty and not view.is_pending
    assert view.display_name == "Asha Kumar"
    assert view.records == ()


def test_replace_is_idempotent(store, fixed_now):
    batch = [_record("Anatomy", 22, 29, fixed_now), _record("Physiology", 10, 20, fixed_now)]

    store.replace_with_snapshot("21MB001", "Asha Kumar", batch, [], fetched_at=fixed_now)
    store.replace_with_snapshot("21MB001", "Asha Kumar", batch, [], fetched_at=fixed_now)

    view = store.read("21MB001")
    assert len(view.records) == 2
    assert [(r.subject, r.present, r.total) for r in view.records] == [("Anatomy", 22, 29), ("Physiology", 10, 20)]


def test_new_batch_fully_replaces_old_one(store, fixed_now):
    store.replace_with_snapshot(
        "21MB001", "Asha Kumar", [_record("Anatomy", 1, 2, fixed_now), _record("Pathology", 3, 4, fixed_now)], []
    )
    store.replace_with_snapshot("21MB001", "Asha Kumar", [_record("Anatomy", 5, 6, fixed_now)], [])

    view = store.read("21MB001")
    assert [(r.subject, r.present) for r in view.records] == [("Anatomy", 5)]


def test_bare_replace_detaches_snapshot_until_upsert(store, fixed_now):
    store.replace_with_snapshot("21MB001", "Asha Kumar", [_record("Anatomy", 22, 29, fixed_now)], [])

    ref = store.replace("21MB001", "Asha Kumar", [_record("Anatomy", 23, 30, fixed_now)], [])
    assert store.read("21MB001").state == SnapshotState.EMPTY

    store.upsert_snapshot("21MB001", ref, display_name="Asha Kumar", fetched_at=fixed_now)
    view = store.read("21MB001")
    assert view.state == SnapshotState.SUCCESS
    assert view.records[0].present == 23


def test_identities_are_isolated(store, fixed_now):
    store.replace_with_snapshot("21MB001", "Asha Kumar", [_record("Anatomy", 22, 29, fixed_now)], [])

    assert store.read("21MB002").is_pending


def test_failures_are_listed_newest_first():
    ticks = iter(datetime(2025, 3, 10, 9, 0) + timedelta(minutes=i) for i in range(10))
    store = InMemoryAttendanceStore(clock=lambda: next(ticks))

    store.record_failure("21MB001", FailureReason.AUTH_REJECTED, "bad password")
    store.record_failure("21MB002", FailureReason.STORAGE, "db down")
    store.record_failure("21MB001", FailureReason.PORTAL_UNAVAILABLE, "timeout")

    failures = store.recent_failures("21MB001")
    assert [f.reason for f in failures] == [FailureReason.PORTAL_UNAVAILABLE, FailureReason.AUTH_REJECTED]
    assert failures[0].created_at > failures[1].created_at
    assert len(store.recent_failures("21MB001", limit=1)) == 1
    # The failure log never touches the snapshot.
    assert store.read("21MB001").is_pending
