from datetime import datetime, timezone
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest

from healthtrack.core.client import RecordsClient
from healthtrack.utils.timeutils import from_civil_datetime, to_iso_string

HK = ZoneInfo("Asia/Hong_Kong")

# 2024-01-15 12:00 in Hong Kong
FIXED_NOW = datetime(2024, 1, 15, 4, 0, tzinfo=timezone.utc)


def hk_iso(local: str) -> str:
    """'2024-01-01T07:00' Hong Kong civil time -> stored ISO-8601 UTC string."""
    return to_iso_string(from_civil_datetime(local, HK))


@pytest.fixture
def tz():
    return HK


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def client():
    return MagicMock(spec=RecordsClient)
