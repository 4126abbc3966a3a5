from __future__ import annotations

from datetime import datetime

import pytest


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 10, 9, 30, 0)


@pytest.fixture
def clock(fixed_now):
    return lambda: fixed_now
