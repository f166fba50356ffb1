from __future__ import annotations

import os
from datetime import date

import pytest

# Set env before any field_timesheets imports (settings are created at import time).
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["GOOGLE_MAPS_API_KEY"] = ""
os.environ.setdefault("TIMEZONE", "America/New_York")
os.environ.setdefault("LOG_LEVEL", "WARNING")

# A Wednesday; the Saturday before it is 2026-01-10.
TODAY = date(2026, 1, 14)


@pytest.fixture
def today() -> date:
    return TODAY
