from __future__ import annotations

from typing import Protocol, Sequence

from .model import PortalProfile, PortalSession, RawAttendanceRow


class PortalClient(Protocol):
    def authenticate(self, identity: str, secret: str) -> PortalSession:
        raise NotImplementedError

    def fetch_profile(self, session: PortalSession) -> PortalProfile:
        raise NotImplementedError

    def fetch_attendance_table(self, session: PortalSession, from_date: str, to_date: str) -> Sequence[RawAttendanceRow]:
        raise NotImplementedError

    def close(self, session: PortalSession) -> None:
        raise NotImplementedError
