from datetime import date, datetime, timezone as dt_timezone

import pytest

from notifications.services.expiry import (
    ExpiryStatus,
    days_until,
    expiry_status,
    format_expiry,
    status_for,
)


def test_same_day_is_zero():
    assert days_until(date(2025, 1, 1), date(2025, 1, 1)) == 0


def test_time_of_day_is_ignored():
    early = datetime(2025, 1, 1, 0, 1)
    late = datetime(2025, 1, 1, 23, 59)
    expiry_morning = datetime(2025, 2, 15, 6, 0)
    expiry_night = datetime(2025, 2, 15, 22, 30)

    results = {
        days_until(ref, exp)
        for ref in (early, late, date(2025, 1, 1))
        for exp in (expiry_morning, expiry_night, date(2025, 2, 15))
    }
    assert results == {45}


def test_aware_datetimes_use_the_local_calendar_day(settings):
    settings.TIME_ZONE = "Asia/Jerusalem"
    # 22:30 UTC on Jan 1st is already Jan 2nd in Israel
    reference = datetime(2025, 1, 1, 22, 30, tzinfo=dt_timezone.utc)

    assert days_until(reference, date(2025, 2, 15)) == 44


def test_negative_when_expired():
    assert days_until(date(2025, 3, 1), date(2025, 2, 27)) == -2


@pytest.mark.parametrize(
    "days, status",
    [
        (-1, ExpiryStatus.EXPIRED),
        (0, ExpiryStatus.CRITICAL),
        (7, ExpiryStatus.CRITICAL),
        (8, ExpiryStatus.WARNING),
        (30, ExpiryStatus.WARNING),
        (31, ExpiryStatus.GOOD),
        (45, ExpiryStatus.GOOD),
    ],
)
def test_status_buckets(days, status):
    assert expiry_status(days) == status


def test_status_for_combines_both_steps():
    assert status_for(date(2025, 1, 1), date(2025, 1, 5)) == "critical"


def test_format_expiry_matches_hebrew_locale():
    assert format_expiry(date(2025, 2, 15)) == "15.2.2025"
    assert format_expiry(date(2025, 11, 3)) == "3.11.2025"
