"""
Pytest configuration and shared fixtures.

FakeCalendar stands in for the solar-term service so chart tests do not
depend on ephemeris precision.
"""

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Add the project root to the path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)


class FakeCalendar:
    """Calendar service returning fixed answers and recording its calls."""

    def __init__(self, month_branch, effective_year, next_transition=None, prev_transition=None):
        self.month_branch = month_branch
        self.effective_year = effective_year
        self.next_transition = next_transition
        self.prev_transition = prev_transition
        self.calls = []

    def birth_instant(self, year, month, day, hour=0, minute=0):
        return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)

    def resolve_month_branch(self, year, month, day, hour=12, minute=0):
        self.calls.append(("resolve_month_branch", year, month, day, hour, minute))
        return self.month_branch, self.effective_year

    def next_solar_term_transition(self, year, month, day, hour=0, minute=0):
        self.calls.append(("next", year, month, day, hour, minute))
        return self.next_transition

    def prev_solar_term_transition(self, year, month, day, hour=0, minute=0):
        self.calls.append(("prev", year, month, day, hour, minute))
        return self.prev_transition


@pytest.fixture
def new_year_1990_calendar():
    """
    Calendar answers for 1990-01-01 12:00: Zi month of the 1989 BaZi year,
    previous Jie (Da Xue) 25 days before birth, next Jie (Xiao Han) 4 days after.
    """
    birth = datetime(1990, 1, 1, 12, 0, tzinfo=timezone.utc)
    return FakeCalendar(
        month_branch=0,
        effective_year=1989,
        next_transition=birth + timedelta(days=4, hours=3),
        prev_transition=birth - timedelta(days=25, hours=2),
    )


@pytest.fixture
def fake_calendar_factory():
    return FakeCalendar
