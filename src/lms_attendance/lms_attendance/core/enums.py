from __future__ import annotations

from enum import Enum


class RecordSource(str, Enum):
    """Where an attendance row came from."""

    SCRAPER = "scraper"


class SnapshotState(str, Enum):
    """Observable state of the per-identity snapshot pointer."""

    PENDING = "PENDING"
    EMPTY = "EMPTY"
    SUCCESS = "SUCCESS"


class AcquisitionStage(str, Enum):
    """Steps of one acquisition cycle, in execution order."""

    AUTHENTICATING = "AUTHENTICATING"
    FETCHING_PROFILE = "FETCHING_PROFILE"
    FETCHING_ATTENDANCE = "FETCHING_ATTENDANCE"
    COMPUTING = "COMPUTING"
    PERSISTING = "PERSISTING"
    DONE = "DONE"


class FailureReason(str, Enum):
    """Classified outcome of a failed acquisition cycle."""

    AUTH_REJECTED = "AUTH_REJECTED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    PORTAL_UNAVAILABLE = "PORTAL_UNAVAILABLE"
    PORTAL_ERROR = "PORTAL_ERROR"
    STORAGE = "STORAGE"
    INVALID_REQUEST = "INVALID_REQUEST"

    @property
    def is_transient(self) -> bool:
        return self in {FailureReason.PORTAL_UNAVAILABLE, FailureReason.PORTAL_ERROR, FailureReason.STORAGE}
