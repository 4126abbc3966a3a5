from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

import requests


@dataclass
class PortalSession:
    """Authenticated, cookie-carrying session for one identity."""

    identity: str
    http: requests.Session

    def close(self) -> None:
        self.http.close()


@dataclass(frozen=True)
class UpcomingClass:
    """One entry of the dashboard's upcoming list, read best-effort."""

    title: str
    subtitle: str = ""
    location: str = ""
    time: str = ""
    avatar: str = ""

    def as_metadata(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PortalProfile:
    display_name: str
    upcoming: list[UpcomingClass] = field(default_factory=list)


@dataclass(frozen=True)
class RawAttendanceRow:
    """A row of the portal's attendance table before metrics are derived."""

    subject: str
    present: int
    total: int
    percent: Optional[float] = None
    absent: Optional[int] = None
