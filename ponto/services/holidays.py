from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from functools import lru_cache

FIXED_HOLIDAYS: dict[str, str] = {
    "01-01": "Confraternizacao Universal",
    "04-21": "Tiradentes",
    "05-01": "Dia do Trabalho",
    "09-07": "Independencia",
    "10-12": "Nossa Senhora Aparecida",
    "11-02": "Finados",
    "11-15": "Proclamacao da Republica",
    "12-25": "Natal",
}

# Offsets in days relative to Easter Sunday.
MOVABLE_HOLIDAYS: dict[str, int] = {
    "Carnaval (segunda)": -48,
    "Carnaval (terca)": -47,
    "Sexta-feira Santa": -2,
    "Corpus Christi": 60,
}


@dataclass(frozen=True)
class RestDayCount:
    start: date
    end: date
    business_days: int
    sundays_and_holidays: int
    holidays: list[date]


def easter_sunday(year: int) -> date:
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = ((h + l - 7 * m + 114) % 31) + 1
    return date(year, month, day)


def movable_holidays(year: int) -> dict[date, str]:
    easter = easter_sunday(year)
    return {easter + timedelta(days=offset): name for name, offset in MOVABLE_HOLIDAYS.items()}


@lru_cache(maxsize=64)
def holidays_for_year(year: int) -> dict[date, str]:
    result: dict[date, str] = {}
    for month_day, name in FIXED_HOLIDAYS.items():
        month, day = (int(part) for part in month_day.split("-"))
        result[date(year, month, day)] = name
    result.update(movable_holidays(year))
    return dict(sorted(result.items()))


def is_holiday(day: date) -> bool:
    return day in holidays_for_year(day.year)


def competence_window(month: int, year: int, cycle_start_day: int = 1) -> tuple[date, date]:
    """Calendar range covered by the competence MM/YYYY.

    With a cycle start day above 1 the range runs from the day after the cutoff in the
    previous month up to the cutoff in the reference month. Cutoffs beyond a month's last
    day are clamped to it.
    """
    cycle = min(31, max(1, int(cycle_start_day or 1)))
    if cycle <= 1:
        return date(year, month, 1), date(year, month, monthrange(year, month)[1])

    prev_year, prev_month = (year - 1, 12) if month == 1 else (year, month - 1)
    prev_cutoff = min(cycle, monthrange(prev_year, prev_month)[1])
    start = date(prev_year, prev_month, prev_cutoff) + timedelta(days=1)
    end = date(year, month, min(cycle, monthrange(year, month)[1]))
    return start, end


def count_business_and_rest_days(month: int, year: int, cycle_start_day: int = 1) -> RestDayCount:
    start, end = competence_window(month, year, cycle_start_day)
    business_days = 0
    rest_days = 0
    holidays: list[date] = []

    current = start
    while current <= end:
        weekday = current.weekday()
        # Holidays are looked up in the day's own year so windows crossing January stay correct.
        holiday = is_holiday(current)
        if holiday:
            holidays.append(current)
        if holiday or weekday == 6:
            rest_days += 1
        elif weekday != 5:
            business_days += 1
        current += timedelta(days=1)

    return RestDayCount(
        start=start,
        end=end,
        business_days=business_days,
        sundays_and_holidays=rest_days,
        holidays=holidays,
    )
