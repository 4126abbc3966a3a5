from __future__ import annotations

import pytest

from lms_attendance.attendance.memory_store import InMemoryAttendanceStore
from lms_attendance.container import build_container, build_store
from lms_attendance.core.enums import SnapshotState
from lms_attendance.core.exceptions import ValidationError
from lms_attendance.main import bootstrap
from lms_attendance.portal.lms_client import LmsSessionClient
from lms_attendance.portal.model import PortalProfile, RawAttendanceRow


class FakeSession:
    def __init__(self, identity):
        self.identity = identity


class FakePortal:
    def authenticate(self, identity, secret):
        return FakeSession(identity)

    def fetch_profile(self, session):
        return PortalProfile(display_name="Asha Kumar")

    def fetch_attendance_table(self, session, from_date, to_date):
        return [RawAttendanceRow(subject="Anatomy", present=22, total=29)]

    def close(self, session):
        pass


@pytest.fixture
def container():
    c = build_container(storage_backend="memory", portal=FakePortal(), scrape_wait_ms=5000, scrape_max_workers=2)
    yield c
    c.scheduler.shutdown(wait=True)


def test_memory_container_end_to_end(container):
    assert container.conn is None
    assert container.scrape_wait_seconds == 5.0
    assert container.store.read("21MB001").is_pending

    handle, result = container.scheduler.trigger_and_wait(
        "21MB001", "s3cret", timeout=container.scrape_wait_seconds
    )

    assert handle.identity == "21MB001"
    assert result is not None and result.ok
    view = container.store.read("21MB001")
    assert view.state == SnapshotState.SUCCESS
    assert view.records[0].percent == 75.86


def test_build_store_rejects_unknown_backend():
    with pytest.raises(ValidationError):
        build_store(backend="redis", db_config=None)


def test_build_store_requires_db_config_for_mysql():
    with pytest.raises(ValidationError):
        build_store(backend="mysql", db_config={})


def test_bootstrap_with_testing_settings():
    container = bootstrap("config.testing")
    try:
        assert isinstance(container.store, InMemoryAttendanceStore)
        assert isinstance(container.portal, LmsSessionClient)
        assert container.portal.settings.base_url == "http://lms.test/lms"
        assert container.scrape_wait_seconds == 0
    finally:
        container.scheduler.shutdown(wait=True)
