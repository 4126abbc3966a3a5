from __future__ import annotations

import threading

import pytest

from lms_attendance.acquisition.model import AcquisitionResult
from lms_attendance.core.enums import AcquisitionStage, FailureReason
from lms_attendance.jobs.scheduler import ScrapeJobScheduler


# -------------------------
# Fakes
# -------------------------
class BlockingService:
    """Acquisition stand-in that holds every run until ``release`` is set."""

    def __init__(self, clock, *, blocked=True):
        self._clock = clock
        self.release = threading.Event()
        if not blocked:
            self.release.set()
        self.started = threading.Event()
        self.calls = []
        self._lock = threading.Lock()

    def run(self, identity, secret, from_date=None, to_date=None):
        with self._lock:
            self.calls.append((identity, secret, from_date, to_date))
        self.started.set()
        assert self.release.wait(timeout=5)
        return AcquisitionResult.success(identity, finished_at=self._clock(), record_count=1, upcoming_count=0)


class ExplodingService:
    def run(self, identity, secret, from_date=None, to_date=None):
        raise RuntimeError("boom")


@pytest.fixture
def scheduler_factory(clock):
    created = []

    def make(service):
        scheduler = ScrapeJobScheduler(service, max_workers=4, clock=clock)
        created.append(scheduler)
        return scheduler

    yield make
    for scheduler in created:
        scheduler.shutdown(wait=True)


# -------------------------
# Tests
# -------------------------
def test_second_trigger_joins_running_job(scheduler_factory, clock):
    service = BlockingService(clock)
    scheduler = scheduler_factory(service)

    first = scheduler.trigger("21MB001", "s3cret")
    assert service.started.wait(timeout=5)
    second = scheduler.trigger("21MB001", "s3cret")

    assert second is first
    assert scheduler.is_running("21MB001")

    service.release.set()
    result = scheduler.await_bounded(first, timeout=5)

    assert result.ok
    assert len(service.calls) == 1


def test_different_identities_run_independently(scheduler_factory, clock):
    service = BlockingService(clock)
    scheduler = scheduler_factory(service)

    a = scheduler.trigger("21MB001", "x")
    b = scheduler.trigger("21MB002", "y")

    assert a is not b
    service.release.set()
    assert scheduler.await_bounded(a, timeout=5).identity == "21MB001"
    assert scheduler.await_bounded(b, timeout=5).identity == "21MB002"
    assert sorted(c[0] for c in service.calls) == ["21MB001", "21MB002"]


def test_bounded_wait_times_out_without_cancelling(scheduler_factory, clock):
    service = BlockingService(clock)
    scheduler = scheduler_factory(service)

    handle = scheduler.trigger("21MB001", "s3cret")

    assert scheduler.await_bounded(handle, timeout=0.05) is None
    assert not handle.future.cancel()
    assert not handle.done()

    service.release.set()
    result = scheduler.await_bounded(handle, timeout=5)
    assert result is not None and result.ok


def test_new_trigger_after_completion_starts_new_job(scheduler_factory, clock):
    service = BlockingService(clock, blocked=False)
    scheduler = scheduler_factory(service)

    first = scheduler.trigger("21MB001", "s3cret", "01-01-2025")
    scheduler.await_bounded(first, timeout=5)
    second = scheduler.trigger("21MB001", "s3cret", "01-02-2025")
    scheduler.await_bounded(second, timeout=5)

    assert second is not first
    assert [c[2] for c in service.calls] == ["01-01-2025", "01-02-2025"]
    assert not scheduler.is_running("21MB001")


def test_trigger_and_wait_returns_handle_and_result(scheduler_factory, clock):
    scheduler = scheduler_factory(BlockingService(clock, blocked=False))

    handle, result = scheduler.trigger_and_wait("21MB001", "s3cret", timeout=5)

    assert handle.identity == "21MB001"
    assert result.ok
    assert result.stage == AcquisitionStage.DONE


def test_service_exception_becomes_failure_result(scheduler_factory):
    scheduler = scheduler_factory(ExplodingService())

    _, result = scheduler.trigger_and_wait("21MB001", "s3cret", timeout=5)

    assert not result.ok
    assert result.reason == FailureReason.PORTAL_ERROR
    assert result.message == "boom"
    assert not scheduler.is_running("21MB001")


def test_surrounding_whitespace_maps_to_same_job(scheduler_factory, clock):
    service = BlockingService(clock)
    scheduler = scheduler_factory(service)

    first = scheduler.trigger("21MB001", "s3cret")
    assert service.started.wait(timeout=5)
    second = scheduler.trigger(" 21MB001 ", "s3cret")

    assert second is first
    assert first.identity == "21MB001"
    assert scheduler.is_running("21MB001 ")

    service.release.set()
    scheduler.await_bounded(first, timeout=5)
    assert [c[0] for c in service.calls] == ["21MB001"]


def test_trigger_after_shutdown_resolves_with_failure(clock):
    service = BlockingService(clock, blocked=False)
    scheduler = ScrapeJobScheduler(service, max_workers=1, clock=clock)
    scheduler.shutdown()

    handle = scheduler.trigger("21MB001", "s3cret")

    assert handle.done()
    result = scheduler.await_bounded(handle, timeout=0)
    assert not result.ok
    assert result.reason == FailureReason.PORTAL_ERROR
    assert service.calls == []
    assert not scheduler.is_running("21MB001")
