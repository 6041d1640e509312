from __future__ import annotations

from dataclasses import dataclass, field, replace
from functools import reduce
from typing import Callable

from ponto.models import BucketTotals, CardDay, PayrollConfig, RateTier
from ponto.services.cards import last_exit_minutes, worked_minutes
from ponto.services.clock import MINUTES_PER_DAY, minutes_of_day, normalize_clock
from ponto.services.holidays import is_holiday
from ponto.services.journey import expected_minutes_for

EARLY_MORNING_END = 5 * 60
DEFAULT_NIGHT_CUTOFF = 22 * 60


@dataclass(frozen=True)
class DayContext:
    day: CardDay
    config: PayrollConfig
    week_accumulator: int = 0
    expected_minutes: int = 0
    worked_minutes: int = 0
    day_end_minutes: int = 0
    overtime_minutes: int = 0
    totals: BucketTotals = field(default_factory=BucketTotals)


DayStep = Callable[[DayContext], DayContext]


def night_cutoff_minutes(config: PayrollConfig) -> int:
    clock = normalize_clock(config.night_cutoff)
    return minutes_of_day(clock) if clock else DEFAULT_NIGHT_CUTOFF


def is_night_minute(minute_of_day: int, cutoff_minutes: int) -> bool:
    return minute_of_day >= cutoff_minutes or minute_of_day < EARLY_MORNING_END


def classify_minute(
    *,
    minute_of_day: int,
    is_sunday: bool,
    week_accumulator: int,
    weekly_limit_minutes: int,
    cutoff_minutes: int,
) -> RateTier:
    night = is_night_minute(minute_of_day % MINUTES_PER_DAY, cutoff_minutes)
    if is_sunday:
        return RateTier.TIER_125 if night else RateTier.TIER_100
    within_limit = weekly_limit_minutes <= 0 or week_accumulator < weekly_limit_minutes
    if within_limit:
        return RateTier.TIER_75 if night else RateTier.TIER_50
    return RateTier.TIER_125 if night else RateTier.TIER_100


def resolve_journey(ctx: DayContext) -> DayContext:
    if ctx.day.date is None:
        return replace(ctx, expected_minutes=0)
    expected = expected_minutes_for(ctx.day.date, ctx.config, is_overtime_card=ctx.day.is_overtime_card)
    return replace(ctx, expected_minutes=expected)


def compute_worked_time(ctx: DayContext) -> DayContext:
    return replace(ctx, worked_minutes=worked_minutes(ctx.day), day_end_minutes=last_exit_minutes(ctx.day))


def compute_overtime(ctx: DayContext) -> DayContext:
    if ctx.worked_minutes <= 0:
        overtime = 0
    elif ctx.day.is_sunday:
        overtime = ctx.worked_minutes
    else:
        overtime = max(0, ctx.worked_minutes - ctx.expected_minutes)
    return replace(ctx, overtime_minutes=overtime)


def classify_overtime(ctx: DayContext) -> DayContext:
    if ctx.overtime_minutes <= 0:
        return ctx

    totals = BucketTotals(absence=ctx.totals.absence)
    if not ctx.day.is_overtime_card:
        totals.banked = ctx.overtime_minutes
        return replace(ctx, totals=totals)

    is_sunday = ctx.day.is_sunday
    cutoff = night_cutoff_minutes(ctx.config)
    limit = ctx.config.weekly_limit_minutes
    accumulator = ctx.week_accumulator
    # Walk backwards from the last clock-out; minute index i covers [i, i + 1).
    for processed in range(ctx.overtime_minutes):
        minute = (ctx.day_end_minutes - processed - 1) % MINUTES_PER_DAY
        tier = classify_minute(
            minute_of_day=minute,
            is_sunday=is_sunday,
            week_accumulator=accumulator,
            weekly_limit_minutes=limit,
            cutoff_minutes=cutoff,
        )
        totals.add_tier(tier)
        if not is_sunday:
            accumulator += 1
    return replace(ctx, totals=totals, week_accumulator=accumulator)


def compute_absence(ctx: DayContext) -> DayContext:
    day = ctx.day
    if day.is_overtime_card or day.is_sunday or day.is_manual_annotation:
        return ctx
    # Holidays are rest days; a blank or short holiday is never debited.
    if day.date is not None and is_holiday(day.date):
        return ctx

    absence = 0
    if 0 < ctx.worked_minutes < ctx.expected_minutes:
        absence = ctx.expected_minutes - ctx.worked_minutes
    elif ctx.worked_minutes == 0 and ctx.expected_minutes > 0:
        absence = ctx.expected_minutes
    if not absence:
        return ctx

    totals = replace(ctx.totals, absence=absence)
    return replace(ctx, totals=totals)


DAY_STEPS: tuple[DayStep, ...] = (
    resolve_journey,
    compute_worked_time,
    compute_overtime,
    classify_overtime,
    compute_absence,
)


def classify_day(day: CardDay, config: PayrollConfig, *, week_accumulator: int = 0) -> DayContext:
    """Run one card day through the rule steps.

    The returned context carries the day's bucket minutes and the weekly accumulator to hand
    to the next day of the same week.
    """
    initial = DayContext(day=day, config=config, week_accumulator=week_accumulator)
    return reduce(lambda ctx, step: step(ctx), DAY_STEPS, initial)
