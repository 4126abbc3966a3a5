from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .acquisition.service import AcquisitionService
from .attendance.memory_store import InMemoryAttendanceStore
from .attendance.mysql_attendance_store import MySQLAttendanceStore
from .attendance.repository import AttendanceStore
from .core.constants import (
    DEFAULT_FROM_DATE,
    DEFAULT_PORTAL_BASE_URL,
    DEFAULT_PORTAL_TIMEOUT,
    DEFAULT_SCRAPE_MAX_WORKERS,
    DEFAULT_SCRAPE_WAIT_MS,
)
from .core.exceptions import ValidationError
from .database.connection import DBConfig, DatabaseConnection
from .jobs.scheduler import ScrapeJobScheduler
from .portal.lms_client import LmsSessionClient, PortalSettings
from .portal.repository import PortalClient


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    store: AttendanceStore
    portal: PortalClient

    acquisition_service: AcquisitionService
    scheduler: ScrapeJobScheduler

    scrape_wait_seconds: float


def build_store(*, backend: str, db_config: Optional[dict]) -> tuple[AttendanceStore, Optional[DatabaseConnection]]:
    backend = (backend or "mysql").lower()
    if backend == "memory":
        return InMemoryAttendanceStore(), None
    if backend == "mysql":
        if not db_config:
            raise ValidationError("DB_CONFIG is required for the mysql storage backend")
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
        return MySQLAttendanceStore(conn), conn
    raise ValidationError(f"Unknown storage backend: {backend!r}")


def build_container(
    *,
    db_config: Optional[dict] = None,
    storage_backend: str = "mysql",
    store: Optional[AttendanceStore] = None,
    portal: Optional[PortalClient] = None,
    portal_base_url: str = DEFAULT_PORTAL_BASE_URL,
    portal_timeout: float = DEFAULT_PORTAL_TIMEOUT,
    default_from_date: str = DEFAULT_FROM_DATE,
    scrape_wait_ms: int = DEFAULT_SCRAPE_WAIT_MS,
    scrape_max_workers: int = DEFAULT_SCRAPE_MAX_WORKERS,
) -> Container:
    conn: Optional[DatabaseConnection] = None
    if store is None:
        store, conn = build_store(backend=storage_backend, db_config=db_config)

    portal = portal or LmsSessionClient(PortalSettings(base_url=portal_base_url, timeout=float(portal_timeout)))

    acquisition_service = AcquisitionService(portal, store, default_from_date=default_from_date)
    scheduler = ScrapeJobScheduler(acquisition_service, max_workers=int(scrape_max_workers))

    return Container(
        conn=conn,
        store=store,
        portal=portal,
        acquisition_service=acquisition_service,
        scheduler=scheduler,
        scrape_wait_seconds=max(0, int(scrape_wait_ms)) / 1000,
    )
