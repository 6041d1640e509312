from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from ponto.models import CARD_LINES, PAIR_FIELDS, CardDay, CardType
from ponto.services.clock import duration, minutes_of_day, normalize_clock
from ponto.services.journey import resolve_work_date


def worked_minutes(day: CardDay) -> int:
    return sum(duration(start, end) for start, end in day.periods())


def last_exit_minutes(day: CardDay) -> int:
    complete = [
        (start, end)
        for start, end in day.periods()
        if normalize_clock(start) and normalize_clock(end)
    ]
    if not complete:
        return 0
    return minutes_of_day(complete[-1][1])


def repair_overnight_splits(days: Iterable[CardDay]) -> list[CardDay]:
    """Join periods that capture split across two consecutive rows of the same card.

    A pair with an entry but no exit followed, on the next dated row of the same card, by the
    same pair with an exit but no entry is treated as one period crossing midnight.
    """
    repaired = list(days)
    for card_type in CardType:
        positions = sorted(
            (index for index, day in enumerate(repaired) if day.card_type == card_type and day.date is not None),
            key=lambda index: repaired[index].date,
        )
        for current_pos, next_pos in zip(positions, positions[1:]):
            current = repaired[current_pos]
            following = repaired[next_pos]
            current_changes: dict[str, str] = {}
            following_changes: dict[str, str] = {}
            for start_field, end_field in PAIR_FIELDS:
                if (
                    normalize_clock(getattr(current, start_field))
                    and not normalize_clock(getattr(current, end_field))
                    and not normalize_clock(getattr(following, start_field))
                    and normalize_clock(getattr(following, end_field))
                ):
                    current_changes[end_field] = getattr(following, end_field)
                    following_changes[end_field] = ""
            if current_changes:
                repaired[current_pos] = replace(current, **current_changes)
                repaired[next_pos] = replace(following, **following_changes)
    return repaired


def blank_day(line: int, *, card_type: CardType, month: int, year: int, cycle_start_day: int = 1) -> CardDay:
    return CardDay(
        line=line,
        date=resolve_work_date(line, month, year, cycle_start_day),
        card_type=card_type,
    )


def build_card_template(card_type: CardType, month: int, year: int, cycle_start_day: int = 1) -> list[CardDay]:
    return [
        blank_day(line, card_type=card_type, month=month, year=year, cycle_start_day=cycle_start_day)
        for line in range(1, CARD_LINES + 1)
    ]


def ensure_full_card(
    days: Iterable[CardDay],
    *,
    card_type: CardType,
    month: int,
    year: int,
    cycle_start_day: int = 1,
) -> list[CardDay]:
    """Return exactly 31 rows ordered by line, filling missing lines with blank placeholders.

    Lines outside 1..31 and rows of the other card type are ignored. When a line repeats, the
    last row wins.
    """
    by_line: dict[int, CardDay] = {}
    for day in days:
        if day.card_type != card_type or not 1 <= day.line <= CARD_LINES:
            continue
        by_line[day.line] = day

    return [
        by_line.get(line)
        or blank_day(line, card_type=card_type, month=month, year=year, cycle_start_day=cycle_start_day)
        for line in range(1, CARD_LINES + 1)
    ]
