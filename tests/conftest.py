import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
from utils.calendar_provider import CalendarProvider, FixedClock, set_default_calendar


@pytest.fixture
def clock():
    return FixedClock(datetime(2023, 6, 15, 12, tzinfo=timezone.utc))


@pytest.fixture
def calendar(clock):
    return CalendarProvider(clock)


@pytest.fixture(autouse=True)
def _reset_default_calendar():
    set_default_calendar(None)
    yield
    set_default_calendar(None)
