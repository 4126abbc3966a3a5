from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional
from urllib.parse import urljoin, urlsplit

import requests

from ..core.constants import DEFAULT_PORTAL_BASE_URL, DEFAULT_PORTAL_TIMEOUT
from ..core.exceptions import (
    AuthRejectedError,
    PortalResponseError,
    PortalUnavailableError,
    SessionExpiredError,
)
from .model import PortalProfile, PortalSession, RawAttendanceRow
from .parsing import (
    extract_hidden_fields,
    has_rejection_marker,
    looks_like_login_page,
    parse_attendance_rows,
    parse_profile,
)
from .repository import PortalClient

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/121.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
}

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


@dataclass(frozen=True)
class PortalSettings:
    base_url: str = DEFAULT_PORTAL_BASE_URL
    timeout: float = DEFAULT_PORTAL_TIMEOUT

    @property
    def origin(self) -> str:
        parts = urlsplit(self.base_url)
        return f"{parts.scheme}://{parts.netloc}"

    @property
    def login_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/site/userlogin"

    @property
    def dashboard_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/user/user/dashboard"

    @property
    def attendance_page_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/user/attendence/subjectbyattendance"

    @property
    def attendance_api_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/user/attendence/subjectgetdaysubattendence"


class LmsSessionClient(PortalClient):
    """Stateful client for the LMS: form login with a cookie jar, then two documents.

    Network-level failures (DNS, refused connection, timeout) are raised as
    :class:`PortalUnavailableError` so that callers can tell a portal outage
    from rejected credentials.
    """

    def __init__(
        self,
        settings: Optional[PortalSettings] = None,
        *,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self._settings = settings or PortalSettings()
        self._session_factory = session_factory

    @property
    def settings(self) -> PortalSettings:
        return self._settings

    def _send(self, http: requests.Session, method: str, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self._settings.timeout)
        try:
            return http.request(method, url, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as exc:
            logger.error(f"LMS host not reachable: {method} {url}: {exc}")
            raise PortalUnavailableError(f"LMS host not reachable: {exc}") from exc
        except requests.RequestException as exc:
            raise PortalResponseError(f"LMS request failed: {exc}") from exc

    @staticmethod
    def _ensure_ok(response: requests.Response, what: str) -> None:
        if response.status_code >= 500:
            raise PortalUnavailableError(f"{what} request failed ({response.status_code})", status_code=response.status_code)
        if not response.ok:
            raise PortalResponseError(f"{what} request failed ({response.status_code})", status_code=response.status_code)

    def authenticate(self, identity: str, secret: str) -> PortalSession:
        logger.info(f"Starting LMS login for {identity}")
        http = self._session_factory()
        http.headers.update(DEFAULT_HEADERS)
        try:
            self._login(http, identity, secret)
        except Exception:
            http.close()
            raise
        logger.info(f"LMS login successful for {identity}")
        return PortalSession(identity=identity, http=http)

    def _login(self, http: requests.Session, identity: str, secret: str) -> None:
        login_url = self._settings.login_url

        login_page = self._send(http, "GET", login_url)
        self._ensure_ok(login_page, "Login page")
        hidden = extract_hidden_fields(login_page.text)

        form = dict(hidden)
        form["username"] = identity
        form["password"] = secret

        response = self._send(
            http,
            "POST",
            login_url,
            data=form,
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Origin": self._settings.origin,
                "Referer": login_url,
            },
            allow_redirects=False,
        )

        if response.status_code in REDIRECT_STATUSES:
            location = response.headers.get("Location")
            if location:
                # One hop is enough for the portal to set its session cookies.
                self._send(http, "GET", urljoin(login_url, location))
            return

        if response.status_code == 200 and not has_rejection_marker(response.text):
            return

        logger.error(f"LMS login rejected credentials for {identity} (status={response.status_code})")
        raise AuthRejectedError(
            "the LMS rejected the credentials or returned an unexpected response",
            status_code=response.status_code,
        )

    def fetch_profile(self, session: PortalSession) -> PortalProfile:
        response = self._send(session.http, "GET", self._settings.dashboard_url)
        self._ensure_ok(response, "Dashboard")
        html = response.text
        if looks_like_login_page(html):
            raise SessionExpiredError("Session invalid: dashboard returned login page")
        profile = parse_profile(html, session.identity)
        logger.info(f"Fetched dashboard for {session.identity} (upcoming={len(profile.upcoming)})")
        return profile

    def fetch_attendance_table(self, session: PortalSession, from_date: str, to_date: str) -> list[RawAttendanceRow]:
        page_url = self._settings.attendance_page_url
        # The attendance API only answers once this page has been visited.
        self._send(session.http, "GET", page_url)

        logger.info(f"Fetching attendance for {session.identity} from {from_date} to {to_date}")
        response = self._send(
            session.http,
            "POST",
            self._settings.attendance_api_url,
            data={"date": from_date, "end_date": to_date, "subject": ""},
            headers={
                "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
                "X-Requested-With": "XMLHttpRequest",
                "Referer": page_url,
                "Accept": "application/json, text/javascript, */*; q=0.01",
            },
        )
        self._ensure_ok(response, "Attendance API")

        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not payload or not isinstance(payload, dict):
            raise PortalResponseError("Attendance API returned an empty response")

        if str(payload.get("status")) != "1":
            logger.debug(f"Attendance API status={payload.get('status')!r} for {session.identity}")
        return parse_attendance_rows(payload.get("result_page") or "")

    def close(self, session: PortalSession) -> None:
        session.close()
