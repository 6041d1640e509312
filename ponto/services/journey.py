from __future__ import annotations

import re
from datetime import date

from ponto.errors import InvalidReferenceError
from ponto.models import PayrollConfig

SATURDAY = 5
SUNDAY = 6

_REFERENCE_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


def resolve_expected_minutes(
    *,
    daily_journey_hours: float,
    is_overtime_card: bool,
    weekday: int,
    saturday_compensation: bool,
    compensation_weekdays: tuple[int, ...] | frozenset[int],
) -> int:
    if is_overtime_card:
        return 0

    base = int(round((daily_journey_hours or 0) * 60))
    if not saturday_compensation:
        return base
    if weekday in compensation_weekdays:
        return base + 60
    if weekday == SATURDAY:
        return 0
    return base


def expected_minutes_for(day: date, config: PayrollConfig, *, is_overtime_card: bool = False) -> int:
    return resolve_expected_minutes(
        daily_journey_hours=config.daily_journey_hours,
        is_overtime_card=is_overtime_card,
        weekday=day.weekday(),
        saturday_compensation=config.saturday_compensation,
        compensation_weekdays=config.compensation_weekdays,
    )


def resolve_work_date(line: int, month: int, year: int, cycle_start_day: int = 1) -> date | None:
    """Map a physical card line to its calendar date.

    Lines above the cycle start day belong to the month before the competence. Lines that do
    not exist in the resolved month (e.g. line 31 of a 30-day month) have no date.
    """
    cycle = min(31, max(1, int(cycle_start_day or 1)))
    target_month, target_year = month, year
    if cycle > 1 and line > cycle:
        target_month, target_year = (12, year - 1) if month == 1 else (month - 1, year)
    try:
        return date(target_year, target_month, line)
    except ValueError:
        return None


def parse_reference(reference: str) -> tuple[int, int]:
    match = _REFERENCE_RE.match((reference or "").strip())
    if not match:
        raise InvalidReferenceError(f"Reference must be formatted as YYYY-MM, got {reference!r}.")
    year, month = int(match.group(1)), int(match.group(2))
    validate_competence(month, year)
    return month, year


def validate_competence(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise InvalidReferenceError(f"Month must be between 1 and 12, got {month}.")
    if not 1900 <= year <= 9999:
        raise InvalidReferenceError(f"Year out of range: {year}.")
