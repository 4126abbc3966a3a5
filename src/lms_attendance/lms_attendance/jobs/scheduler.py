from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime
from typing import Callable, Optional

from ..acquisition.model import AcquisitionResult
from ..acquisition.service import AcquisitionService
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_SCRAPE_MAX_WORKERS
from ..core.enums import AcquisitionStage, FailureReason
from .keyed_lock import KeyedLock
from .model import ScrapeHandle, ScrapeJob

logger = logging.getLogger(__name__)


class ScrapeJobScheduler:
    """At most one in-flight acquisition per identity.

    A second ``trigger`` for an identity whose job is still running gets the
    same handle back instead of starting new work. Jobs run on a thread pool
    and are never cancelled; ``await_bounded`` only limits how long a caller
    waits.
    """

    def __init__(
        self,
        service: AcquisitionService,
        *,
        max_workers: int = DEFAULT_SCRAPE_MAX_WORKERS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._service = service
        self._clock = clock
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="scrape")
        self._locks = KeyedLock()
        self._jobs: dict[str, ScrapeJob] = {}

    def trigger(
        self,
        identity: str,
        secret: str,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
    ) -> ScrapeHandle:
        # Same normalisation the acquisition service applies before touching the store.
        identity = (identity or "").strip()
        with self._locks.hold(identity):
            job = self._jobs.get(identity)
            if job is not None and job.running:
                logger.info(f"Scrape already running for {identity}")
                return job.handle

            future: Future[AcquisitionResult] = Future()
            # Marked running up front so callers cannot cancel it.
            future.set_running_or_notify_cancel()
            job = ScrapeJob(identity=identity, handle=ScrapeHandle(identity, future, self._clock()))
            self._jobs[identity] = job
            try:
                self._executor.submit(self._run, job, secret, from_date, to_date)
            except RuntimeError as exc:
                # Executor already shut down.
                logger.error(f"Could not queue scrape job for {identity}: {exc}")
                job.running = False
                del self._jobs[identity]
                future.set_result(
                    AcquisitionResult.failure(
                        identity,
                        stage=AcquisitionStage.AUTHENTICATING,
                        reason=FailureReason.PORTAL_ERROR,
                        message=str(exc),
                        finished_at=self._clock(),
                    )
                )
                return job.handle
            logger.info(f"Scrape job queued for {identity}")
            return job.handle

    def _run(self, job: ScrapeJob, secret: str, from_date: Optional[str], to_date: Optional[str]) -> None:
        try:
            result = self._service.run(job.identity, secret, from_date, to_date)
        except Exception as exc:
            logger.exception(f"Scrape job error for {job.identity}")
            result = AcquisitionResult.failure(
                job.identity,
                stage=AcquisitionStage.DONE,
                reason=FailureReason.PORTAL_ERROR,
                message=str(exc) or type(exc).__name__,
                finished_at=self._clock(),
            )
        try:
            with self._locks.hold(job.identity):
                job.running = False
                if self._jobs.get(job.identity) is job:
                    del self._jobs[job.identity]
        finally:
            job.handle.future.set_result(result)

    def await_bounded(self, handle: ScrapeHandle, timeout: Optional[float]) -> Optional[AcquisitionResult]:
        """Wait up to ``timeout`` seconds; None means the job is still running in the background."""
        try:
            return handle.future.result(timeout=timeout)
        except FutureTimeoutError:
            logger.info(f"Scrape for {handle.identity} not finished after {timeout}s")
            return None

    def trigger_and_wait(
        self,
        identity: str,
        secret: str,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        *,
        timeout: Optional[float],
    ) -> tuple[ScrapeHandle, Optional[AcquisitionResult]]:
        handle = self.trigger(identity, secret, from_date, to_date)
        return handle, self.await_bounded(handle, timeout)

    def is_running(self, identity: str) -> bool:
        identity = (identity or "").strip()
        with self._locks.hold(identity):
            job = self._jobs.get(identity)
            return job is not None and job.running

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
