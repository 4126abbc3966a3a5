"""Attendance metrics over (present, total) session counts.

All functions are pure. The 75% rule is judged on the same rounded
percentage that :func:`percent` reports, so ``required`` and ``percent``
agree for any session count. The closed forms use integer arithmetic
(``3 * total - 4 * present``) to stay clear of float error.
"""

from __future__ import annotations

from ..core.constants import ATTENDANCE_THRESHOLD_PERCENT, REQUIRED_SEARCH_LIMIT


def _meets_threshold(present: int, total: int) -> bool:
    # Exact 4p >= 3t always rounds to >= 75.00; very large totals can round up to it too.
    return 4 * present >= 3 * total or percent(present, total) >= ATTENDANCE_THRESHOLD_PERCENT


def percent(present: int, total: int) -> float:
    """Attendance percentage rounded to 2 decimals; 0 when nothing was held."""
    if total == 0:
        return 0.0
    return round(present / total * 100, 2)


def required(present: int, total: int) -> int:
    """Smallest number of consecutive attended sessions that brings the ratio to 75%.

    Solving ``(p + r) / (t + r) = 0.75`` gives ``r = 3t - 4p``.
    """
    if total <= 0 or _meets_threshold(present, total):
        return 0
    return max(0, 3 * total - 4 * present)


def required_iterative(present: int, total: int, *, limit: int = REQUIRED_SEARCH_LIMIT) -> int:
    """Step-by-step version of :func:`required`, kept to cross-check the closed form.

    Stops once the count passes ``limit`` and returns that count.
    """
    if total <= 0 or _meets_threshold(present, total):
        return 0
    r = 0
    while not _meets_threshold(present + r, total + r):
        r += 1
        if r > limit:
            return r
    return r


def can_miss(present: int, total: int) -> int:
    """How many more sessions can be skipped while staying at or above 75%."""
    if total <= 0 or present < 0:
        return 0
    # floor(present / 0.75 - total) without float error.
    allowed = (4 * present - 3 * total) // 3
    return max(0, allowed)
