"""Tests for calculation period construction on business-calendar days."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from brokerage_ledger.ledger import (
    ConfigurationMissingError,
    InvalidPeriodError,
    period_build_day,
    period_build_month,
    period_build_quarter,
    period_quarter_months,
    period_resolve,
)


def test_period_month_bounds_are_local_midnights() -> None:
    """Build a month as a half-open interval of local midnights.

    Returns:
        None: Assertions validate period bounds.

    Raises:
        AssertionError: Raised when bounds are wrong.
    """

    period = period_build_month(2026, 2)

    assert period.period_start == date(2026, 2, 1)
    assert period.period_end == date(2026, 3, 1)
    assert period.total_days_in_period == 28
    assert period.proration_days == 28
    assert period.days_in_quarter is None
    assert period.starts_at.utcoffset() == timedelta(hours=5, minutes=30)
    assert period.starts_at == datetime(2026, 1, 31, 18, 30, tzinfo=timezone.utc)
    assert period.period_key == "month:2026-02-01"


def test_period_contains_is_half_open() -> None:
    """Include the start instant and exclude the end instant.

    Returns:
        None: Assertions validate containment.

    Raises:
        AssertionError: Raised when containment is not half-open.
    """

    period = period_build_month(2026, 12)

    assert period.period_end == date(2027, 1, 1)
    assert period.period_contains(period.starts_at)
    assert not period.period_contains(period.ends_at)
    assert period.period_contains(period.ends_at - timedelta(microseconds=1))


def test_period_quarter_uses_configured_day_count() -> None:
    """Carry the configured quarter day count as proration denominator.

    Returns:
        None: Assertions validate quarter fields.

    Raises:
        AssertionError: Raised when quarter values are wrong.
    """

    period = period_build_quarter(2026, 4, days_in_quarter=90)

    assert period.period_start == date(2026, 10, 1)
    assert period.period_end == date(2027, 1, 1)
    assert period.total_days_in_period == 92
    assert period.proration_days == 90
    assert period.days_in_quarter == 90
    assert [month.period_start for month in period_quarter_months(period)] == [
        date(2026, 10, 1),
        date(2026, 11, 1),
        date(2026, 12, 1),
    ]


def test_period_quarter_without_configuration_raises_configuration_missing() -> None:
    """Refuse to build a quarter whose day count is not configured.

    Returns:
        None: Assertions validate the error type.

    Raises:
        AssertionError: Raised when no error is raised.
    """

    with pytest.raises(ConfigurationMissingError):
        period_resolve("quarter", date(2026, 1, 1), days_in_quarter=None)


@pytest.mark.parametrize(
    ("year", "quarter_number", "days_in_quarter"),
    [(2026, 5, 90), (2026, 0, 90), (1999, 1, 90), (2026, 1, 0), (2026, 1, 93)],
)
def test_period_quarter_rejects_out_of_range_values(year: int, quarter_number: int, days_in_quarter: int) -> None:
    """Reject invalid year, quarter number and day count.

    Args:
        year: Calendar year.
        quarter_number: Quarter number.
        days_in_quarter: Configured day count.

    Returns:
        None: Assertions validate rejection.

    Raises:
        AssertionError: Raised when invalid values are accepted.
    """

    with pytest.raises(InvalidPeriodError):
        period_build_quarter(year, quarter_number, days_in_quarter)


@pytest.mark.parametrize(
    ("period_kind", "period_start"),
    [("month", date(2026, 2, 15)), ("quarter", date(2026, 2, 1)), ("week", date(2026, 2, 2))],
)
def test_period_resolve_rejects_misaligned_or_unknown_requests(period_kind: str, period_start: date) -> None:
    """Reject starts that are not aligned to their kind and unknown kinds.

    Args:
        period_kind: Requested period kind.
        period_start: Requested start date.

    Returns:
        None: Assertions validate rejection.

    Raises:
        AssertionError: Raised when the request is accepted.
    """

    with pytest.raises(InvalidPeriodError):
        period_resolve(period_kind, period_start, days_in_quarter=90)


def test_period_day_prorates_against_its_month() -> None:
    """Build a one-day period whose denominator is the month day count.

    Returns:
        None: Assertions validate day period fields.

    Raises:
        AssertionError: Raised when proration denominator is wrong.
    """

    period = period_resolve(" Day ", date(2024, 2, 10))

    assert period.period_kind == "day"
    assert period.total_days_in_period == 1
    assert period.proration_days == 29
    assert period.period_end == date(2024, 2, 11)


def test_period_local_date_follows_business_timezone() -> None:
    """Resolve instants to the business-calendar date, not the UTC date.

    Returns:
        None: Assertions validate local date conversion.

    Raises:
        AssertionError: Raised when the UTC date is used.
    """

    period = period_build_day(date(2026, 3, 1))

    late_utc_instant = datetime(2026, 2, 28, 20, 0, tzinfo=timezone.utc)
    assert period.period_local_date(late_utc_instant) == date(2026, 3, 1)
    assert period.period_contains(late_utc_instant)


def test_period_rejects_unknown_timezone() -> None:
    """Reject a business timezone that is not an IANA key.

    Returns:
        None: Assertions validate rejection.

    Raises:
        AssertionError: Raised when the timezone is accepted.
    """

    with pytest.raises(InvalidPeriodError):
        period_build_month(2026, 1, "Mars/Olympus")
