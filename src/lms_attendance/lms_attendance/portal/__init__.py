"""Session client for the external LMS portal.

Everything that knows about the portal's URLs and markup lives in this package;
callers only see :class:`PortalProfile` and :class:`RawAttendanceRow`.
"""

from .lms_client import LmsSessionClient, PortalSettings
from .model import PortalProfile, PortalSession, RawAttendanceRow, UpcomingClass
from .repository import PortalClient

__all__ = [
    "LmsSessionClient",
    "PortalSettings",
    "PortalClient",
    "PortalProfile",
    "PortalSession",
    "RawAttendanceRow",
    "UpcomingClass",
]
