"""HTML parsing for the LMS portal.

The portal's markup is unversioned; selectors below are the only place that
needs to change when it moves.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from ..metrics.calculator import percent as compute_percent
from .model import PortalProfile, RawAttendanceRow, UpcomingClass

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_WELCOME_RE = re.compile(r"Welcome,", re.IGNORECASE)
_REJECTION_RE = re.compile(r"invalid username|password", re.IGNORECASE)
_LOGIN_TITLE_RE = re.compile(r"Student Login", re.IGNORECASE)
_LOGIN_FIELD_RE = re.compile(r"Username", re.IGNORECASE)
_PERCENT_RE = re.compile(r"[\d.]+")
_RATIO_RE = re.compile(r"(\d+)\s*/\s*(\d+)")


def clean_text(value: Optional[str]) -> str:
    return _WHITESPACE_RE.sub(" ", value or "").strip()


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def _text(node: Optional[Tag]) -> str:
    return clean_text(node.get_text()) if node is not None else ""


def extract_hidden_fields(html: str) -> dict[str, str]:
    """Every named hidden input of the login form, whatever the portal currently sends."""
    soup = _soup(html)
    fields: dict[str, str] = {}
    for inp in soup.find_all("input", attrs={"type": "hidden"}):
        name = inp.get("name")
        if not name:
            continue
        fields[name] = inp.get("value") or ""
    return fields


def has_rejection_marker(html: str) -> bool:
    return bool(_REJECTION_RE.search(html or ""))


def looks_like_login_page(html: str) -> bool:
    """The dashboard silently serves the login form once the session is gone."""
    html = html or ""
    return bool(_LOGIN_TITLE_RE.search(html) and _LOGIN_FIELD_RE.search(html))


def parse_display_name(soup: BeautifulSoup, fallback: str) -> str:
    name = clean_text(_WELCOME_RE.sub("", _text(soup.select_one("h4.mt0")), count=1))
    return name or fallback


def _parse_upcoming_item(li: Tag) -> UpcomingClass:
    img = li.find("img")
    avatar = clean_text((img.get("src") or img.get("data-src")) if img is not None else "")

    title = _text(li.select_one(".media-title")) or _text(li.select_one(".bmedium"))
    subtitle = _text(li.select_one(".text-muted"))

    location = ""
    time = ""
    ms_auto = li.select_one(".ms-auto")
    if ms_auto is not None:
        children = ms_auto.find_all(recursive=False)
        location = _text(ms_auto.select_one(".bmedium"))
        if not location and children:
            location = _text(children[0])
        time = _text(ms_auto.select_one(".text-muted"))
        if not time and len(children) > 1:
            time = _text(children[1])

    return UpcomingClass(title=title, subtitle=subtitle, location=location, time=time, avatar=avatar)


def parse_upcoming_classes(soup: BeautifulSoup) -> list[UpcomingClass]:
    return [_parse_upcoming_item(li) for li in soup.select(".user-progress .lecture-list")]


def parse_profile(html: str, identity: str) -> PortalProfile:
    soup = _soup(html)
    return PortalProfile(
        display_name=parse_display_name(soup, identity),
        upcoming=parse_upcoming_classes(soup),
    )


def _parse_percent(text: str) -> Optional[float]:
    match = _PERCENT_RE.search(text)
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        # e.g. a lone "." in an otherwise empty cell
        return None


def parse_attendance_rows(result_page: Optional[str]) -> list[RawAttendanceRow]:
    """Rows of the attendance result fragment.

    A fragment without any table is a legitimate empty result, not an error.
    """
    if not result_page:
        return []

    soup = _soup(result_page)
    container = soup.select_one(".attendance_result")
    # Only look outside the result container when the portal sent none.
    table = container.find("table") if container is not None else soup.find("table")
    if table is None:
        logger.warning("No attendance table found in result page")
        return []

    rows: list[RawAttendanceRow] = []
    for tr in table.select("tbody tr") or table.find_all("tr"):
        cells = tr.find_all("td")
        if len(cells) < 3:
            continue

        subject = _text(cells[0])
        percent_value = _parse_percent(_text(cells[1]))

        ratio = _RATIO_RE.search(_text(cells[2]))
        present = int(ratio.group(1)) if ratio else 0
        total = int(ratio.group(2)) if ratio else 0

        rows.append(
            RawAttendanceRow(
                subject=subject,
                present=present,
                total=total,
                absent=total - present if total >= present else 0,
                percent=round(percent_value, 2) if percent_value is not None else compute_percent(present, total),
            )
        )
    return rows
