"""Calculation period construction on local business-calendar days."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigurationMissingError, InvalidPeriodError

PERIOD_KIND_DAY = "day"
PERIOD_KIND_MONTH = "month"
PERIOD_KIND_QUARTER = "quarter"
PERIOD_KINDS = (PERIOD_KIND_DAY, PERIOD_KIND_MONTH, PERIOD_KIND_QUARTER)

DEFAULT_BUSINESS_TIMEZONE = "Asia/Kolkata"

_PERIOD_MIN_YEAR = 2000
_PERIOD_MAX_YEAR = 2100
_PERIOD_MAX_DAYS_IN_QUARTER = 92


@dataclass(frozen=True)
class CalculationPeriod:
    """Half-open billing interval `[starts_at, ends_at)`.

    Attributes:
        period_kind: `day`, `month` or `quarter`.
        period_start: First local date of the period.
        period_end: First local date after the period.
        starts_at: Local midnight of `period_start`, offset-aware.
        ends_at: Local midnight of `period_end`, offset-aware.
        total_days_in_period: Calendar days in the interval.
        proration_days: Denominator of the held-position formula.
        days_in_quarter: Configured quarter day count, quarters only.
    """

    period_kind: str
    period_start: date
    period_end: date
    starts_at: datetime
    ends_at: datetime
    total_days_in_period: int
    proration_days: int
    days_in_quarter: int | None = None

    @property
    def period_key(self) -> str:
        """Return the stable `kind:YYYY-MM-DD` identity of this period."""

        return f"{self.period_kind}:{self.period_start.isoformat()}"

    def period_contains(self, timestamp_value: datetime) -> bool:
        """Return whether an instant falls inside `[starts_at, ends_at)`."""

        return self.starts_at <= timestamp_value < self.ends_at

    def period_local_date(self, timestamp_value: datetime) -> date:
        """Return the business-calendar date of an instant."""

        return timestamp_value.astimezone(self.starts_at.tzinfo).date()


def period_days_in_month(year: int, month: int) -> int:
    """Return the number of calendar days in one month."""

    return calendar.monthrange(year, month)[1]


def period_quarter_number(month: int) -> int:
    """Return quarter number 1..4 containing a calendar month."""

    return (month - 1) // 3 + 1


def period_build_range(
    period_kind: str,
    period_start: date,
    period_end: date,
    proration_days: int,
    timezone_name: str = DEFAULT_BUSINESS_TIMEZONE,
    days_in_quarter: int | None = None,
) -> CalculationPeriod:
    """Build a period from explicit local-date bounds.

    Args:
        period_kind: Period kind label.
        period_start: Inclusive first local date.
        period_end: Exclusive end local date.
        proration_days: Held-formula denominator.
        timezone_name: IANA business timezone.
        days_in_quarter: Configured quarter day count, quarters only.

    Returns:
        CalculationPeriod: Validated period.

    Raises:
        InvalidPeriodError: Raised when bounds are malformed or the kind is unknown.
    """

    if period_kind not in PERIOD_KINDS:
        raise InvalidPeriodError(f"unsupported period_kind={period_kind}")
    if period_end <= period_start:
        raise InvalidPeriodError(
            f"period_end={period_end.isoformat()} must be after period_start={period_start.isoformat()}"
        )
    if proration_days < 1:
        raise InvalidPeriodError("proration_days must be >= 1")

    business_timezone = _period_resolve_timezone(timezone_name)
    return CalculationPeriod(
        period_kind=period_kind,
        period_start=period_start,
        period_end=period_end,
        starts_at=datetime.combine(period_start, time.min, tzinfo=business_timezone),
        ends_at=datetime.combine(period_end, time.min, tzinfo=business_timezone),
        total_days_in_period=(period_end - period_start).days,
        proration_days=proration_days,
        days_in_quarter=days_in_quarter,
    )


def period_build_day(day: date, timezone_name: str = DEFAULT_BUSINESS_TIMEZONE) -> CalculationPeriod:
    """Build a one-day accrual period prorated against its calendar month.

    Args:
        day: Local business date.
        timezone_name: IANA business timezone.

    Returns:
        CalculationPeriod: Day period.

    Raises:
        InvalidPeriodError: Raised when the year is out of range.
    """

    _period_validate_year(day.year)
    return period_build_range(
        period_kind=PERIOD_KIND_DAY,
        period_start=day,
        period_end=day + timedelta(days=1),
        proration_days=period_days_in_month(day.year, day.month),
        timezone_name=timezone_name,
    )


def period_build_month(year: int, month: int, timezone_name: str = DEFAULT_BUSINESS_TIMEZONE) -> CalculationPeriod:
    """Build the first-of-month to first-of-next-month period.

    Args:
        year: Calendar year.
        month: Calendar month 1..12.
        timezone_name: IANA business timezone.

    Returns:
        CalculationPeriod: Month period.

    Raises:
        InvalidPeriodError: Raised when year or month is out of range.
    """

    _period_validate_year(year)
    if not 1 <= month <= 12:
        raise InvalidPeriodError(f"month must be between 1 and 12, got {month}")

    month_start = date(year, month, 1)
    month_end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return period_build_range(
        period_kind=PERIOD_KIND_MONTH,
        period_start=month_start,
        period_end=month_end,
        proration_days=period_days_in_month(year, month),
        timezone_name=timezone_name,
    )


def period_build_quarter(
    year: int,
    quarter_number: int,
    days_in_quarter: int | None,
    timezone_name: str = DEFAULT_BUSINESS_TIMEZONE,
) -> CalculationPeriod:
    """Build a quarter period carrying its configured day count.

    Args:
        year: Calendar year.
        quarter_number: Quarter number 1..4.
        days_in_quarter: Authoritative configured day count.
        timezone_name: IANA business timezone.

    Returns:
        CalculationPeriod: Quarter period.

    Raises:
        InvalidPeriodError: Raised when year, quarter number or day count is out of range.
        ConfigurationMissingError: Raised when no day count is configured.
    """

    _period_validate_year(year)
    if not 1 <= quarter_number <= 4:
        raise InvalidPeriodError(f"quarter_number must be between 1 and 4, got {quarter_number}")
    if days_in_quarter is None:
        raise ConfigurationMissingError(f"days_in_quarter is not configured for {year}-Q{quarter_number}")
    if not 1 <= days_in_quarter <= _PERIOD_MAX_DAYS_IN_QUARTER:
        raise InvalidPeriodError(
            f"days_in_quarter must be between 1 and {_PERIOD_MAX_DAYS_IN_QUARTER}, got {days_in_quarter}"
        )

    first_month = (quarter_number - 1) * 3 + 1
    quarter_start = date(year, first_month, 1)
    quarter_end = date(year + 1, 1, 1) if quarter_number == 4 else date(year, first_month + 3, 1)
    return period_build_range(
        period_kind=PERIOD_KIND_QUARTER,
        period_start=quarter_start,
        period_end=quarter_end,
        proration_days=days_in_quarter,
        timezone_name=timezone_name,
        days_in_quarter=days_in_quarter,
    )


def period_quarter_months(period: CalculationPeriod) -> list[CalculationPeriod]:
    """Split a quarter into its three constituent month periods.

    Args:
        period: Quarter period.

    Returns:
        list[CalculationPeriod]: Month periods in calendar order.

    Raises:
        InvalidPeriodError: Raised when period is not a quarter.
    """

    if period.period_kind != PERIOD_KIND_QUARTER:
        raise InvalidPeriodError(f"expected a quarter period, got {period.period_kind}")

    timezone_name = str(period.starts_at.tzinfo)
    return [
        period_build_month(period.period_start.year, period.period_start.month + offset, timezone_name)
        for offset in range(3)
    ]


def period_resolve(
    period_kind: str,
    period_start: date,
    timezone_name: str = DEFAULT_BUSINESS_TIMEZONE,
    days_in_quarter: int | None = None,
) -> CalculationPeriod:
    """Resolve a `(period_kind, period_start)` request into a period.

    Args:
        period_kind: `day`, `month` or `quarter`.
        period_start: First local date of the requested period.
        timezone_name: IANA business timezone.
        days_in_quarter: Configured quarter day count, quarters only.

    Returns:
        CalculationPeriod: Resolved period.

    Raises:
        InvalidPeriodError: Raised when the start date is not aligned to the period kind.
        ConfigurationMissingError: Raised for quarters without configured day count.
    """

    normalized_kind = (period_kind or "").strip().lower()
    if normalized_kind == PERIOD_KIND_DAY:
        return period_build_day(period_start, timezone_name)
    if normalized_kind == PERIOD_KIND_MONTH:
        if period_start.day != 1:
            raise InvalidPeriodError(f"month period_start must be a first-of-month date, got {period_start.isoformat()}")
        return period_build_month(period_start.year, period_start.month, timezone_name)
    if normalized_kind == PERIOD_KIND_QUARTER:
        if period_start.day != 1 or period_start.month not in (1, 4, 7, 10):
            raise InvalidPeriodError(f"quarter period_start must be a quarter's first date, got {period_start.isoformat()}")
        return period_build_quarter(
            period_start.year,
            period_quarter_number(period_start.month),
            days_in_quarter,
            timezone_name,
        )
    raise InvalidPeriodError(f"unsupported period_kind={period_kind}")


def _period_validate_year(year: int) -> None:
    if not _PERIOD_MIN_YEAR <= year <= _PERIOD_MAX_YEAR:
        raise InvalidPeriodError(f"year must be between {_PERIOD_MIN_YEAR} and {_PERIOD_MAX_YEAR}, got {year}")


def _period_resolve_timezone(timezone_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as error:
        raise InvalidPeriodError(f"unknown business timezone={timezone_name}") from error


__all__ = [
    "CalculationPeriod",
    "DEFAULT_BUSINESS_TIMEZONE",
    "PERIOD_KINDS",
    "PERIOD_KIND_DAY",
    "PERIOD_KIND_MONTH",
    "PERIOD_KIND_QUARTER",
    "period_build_day",
    "period_build_month",
    "period_build_quarter",
    "period_build_range",
    "period_days_in_month",
    "period_quarter_months",
    "period_quarter_number",
    "period_resolve",
]
