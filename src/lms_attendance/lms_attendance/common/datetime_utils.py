from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..core.constants import DEFAULT_FROM_DATE, PORTAL_DATE_FORMAT
from .validators import require_portal_date


def parse_portal_date(value: str) -> date:
    """Parse DD-MM-YYYY string into date."""
    return datetime.strptime(value, PORTAL_DATE_FORMAT).date()


def format_portal_date(value: date) -> str:
    return value.strftime(PORTAL_DATE_FORMAT)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def resolve_date_range(
    from_date: Optional[str],
    to_date: Optional[str],
    *,
    today: Optional[date] = None,
    default_from: str = DEFAULT_FROM_DATE,
) -> tuple[str, str]:
    """Fill in the portal defaults: a fixed historical start and today as the end."""
    start = require_portal_date(from_date, "fromDate") if from_date else default_from
    end = require_portal_date(to_date, "toDate") if to_date else format_portal_date(today or now_local().date())
    return start, end
