from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date

from ponto.errors import SettingsRequiredError
from ponto.models import (
    PAIR_FIELDS,
    BucketTotals,
    CardDay,
    CardType,
    PayrollConfig,
    PayslipAggregates,
    Projection,
    RateTier,
)
from ponto.services.cards import build_card_template
from ponto.services.clock import format_clock, format_duration, minutes_of_day, normalize_clock
from ponto.services.holidays import is_holiday
from ponto.services.journey import SATURDAY, SUNDAY, parse_reference
from ponto.services.overtime_calc import classify_day, classify_minute, night_cutoff_minutes
from ponto.services.weekly import classify, week_key

logger = logging.getLogger("ponto.projection")

MAX_LATENESS_PER_DAY = 60
SUNDAY_DAY_WINDOW = (8 * 60, 18 * 60)
SUNDAY_NIGHT_EARLIEST = 22 * 60
SUNDAY_NIGHT_LENGTH = 4 * 60
PRE_SHIFT_LENGTH = 2 * 60
POST_SHIFT_LENGTH = 6 * 60
MAX_SEGMENTS = len(PAIR_FIELDS)

LOW_TIERS = (RateTier.TIER_50, RateTier.TIER_75)


@dataclass
class _Segment:
    start: int
    end: int


@dataclass
class _Window:
    start: int
    end: int
    segment: _Segment | None = None


@dataclass
class _DayPlan:
    line: int
    date: date
    week_key: str
    is_sunday: bool
    windows: list[_Window]
    placed: dict[RateTier, int] = field(default_factory=dict)

    def segments(self) -> list[tuple[int, int]]:
        return [
            (window.segment.start, window.segment.end)
            for window in self.windows
            if window.segment is not None and window.segment.end > window.segment.start
        ]

    @property
    def minutes(self) -> int:
        return sum(end - start for start, end in self.segments())


@dataclass
class _Snapshot:
    segment: _Segment | None
    accumulator: int | None
    low_tier_day: date | None
    placed: dict[RateTier, int]


class _Allocator:
    """Place requested tier minutes into per-day candidate windows.

    Each window holds a single contiguous run. The classifier walks backwards from the last
    clock-out without skipping the gap between two runs of the same day, so every fill is
    checked against that walk for the whole week and undone when the tiers would drift.
    """

    def __init__(self, plans: list[_DayPlan], config: PayrollConfig):
        self.plans = plans
        self.cutoff = night_cutoff_minutes(config)
        self.limit = config.weekly_limit_minutes
        self.accumulators: dict[str, int] = {}
        self.low_tier_days: dict[str, date] = {}

    def _tier_at(self, plan: _DayPlan, minute: int, accumulator: int | None = None) -> RateTier:
        return classify_minute(
            minute_of_day=minute,
            is_sunday=plan.is_sunday,
            week_accumulator=self.accumulators.get(plan.week_key, 0) if accumulator is None else accumulator,
            weekly_limit_minutes=self.limit,
            cutoff_minutes=self.cutoff,
        )

    def _consume(self, plan: _DayPlan, tier: RateTier) -> None:
        plan.placed[tier] = plan.placed.get(tier, 0) + 1
        if plan.is_sunday:
            return
        self.accumulators[plan.week_key] = self.accumulators.get(plan.week_key, 0) + 1
        if tier in LOW_TIERS:
            latest = self.low_tier_days.get(plan.week_key)
            if latest is None or plan.date > latest:
                self.low_tier_days[plan.week_key] = plan.date

    def _walk_tiers(self, plan: _DayPlan) -> dict[RateTier, int]:
        """Tier minutes the classifier finds on the rendered row of this day."""
        segments = plan.segments()
        counts: dict[RateTier, int] = {}
        if not segments:
            return counts
        day_end = max(end for _, end in segments)
        accumulator = sum(
            other.minutes
            for other in self.plans
            if other.week_key == plan.week_key and not other.is_sunday and other.date < plan.date
        )
        for processed in range(plan.minutes):
            tier = self._tier_at(plan, day_end - processed - 1, accumulator)
            counts[tier] = counts.get(tier, 0) + 1
            if not plan.is_sunday:
                accumulator += 1
        return counts

    def _week_reclassifies(self, week_key: str) -> bool:
        return all(
            self._walk_tiers(plan) == {tier: minutes for tier, minutes in plan.placed.items() if minutes}
            for plan in self.plans
            if plan.week_key == week_key
        )

    def _snapshot(self, plan: _DayPlan, window: _Window) -> _Snapshot:
        segment = window.segment
        return _Snapshot(
            segment=_Segment(segment.start, segment.end) if segment is not None else None,
            accumulator=self.accumulators.get(plan.week_key),
            low_tier_day=self.low_tier_days.get(plan.week_key),
            placed=dict(plan.placed),
        )

    def _restore(self, plan: _DayPlan, window: _Window, snapshot: _Snapshot) -> None:
        window.segment = snapshot.segment
        plan.placed = snapshot.placed
        for state, value in ((self.accumulators, snapshot.accumulator), (self.low_tier_days, snapshot.low_tier_day)):
            if value is None:
                state.pop(plan.week_key, None)
            else:
                state[plan.week_key] = value

    def _grow(self, plan: _DayPlan, window: _Window, tier: RateTier, need: int) -> int:
        if window.segment is None:
            first = next(
                (minute for minute in range(window.start, window.end) if self._tier_at(plan, minute) == tier),
                None,
            )
            if first is None:
                return 0
            window.segment = _Segment(first, first)

        segment = window.segment
        placed = 0
        while placed < need and segment.end < window.end and self._tier_at(plan, segment.end) == tier:
            segment.end += 1
            placed += 1
            self._consume(plan, tier)
        while placed < need and segment.start > window.start and self._tier_at(plan, segment.start - 1) == tier:
            segment.start -= 1
            placed += 1
            self._consume(plan, tier)
        if segment.end == segment.start:
            window.segment = None
        return placed

    def _fill(self, plan: _DayPlan, window: _Window, tier: RateTier, need: int) -> int:
        snapshot = self._snapshot(plan, window)
        placed = self._grow(plan, window, tier, need)
        if placed and not self._week_reclassifies(plan.week_key):
            self._restore(plan, window, snapshot)
            return 0
        return placed

    def _eligible(self, plan: _DayPlan, tier: RateTier, *, sunday: bool) -> bool:
        if plan.is_sunday != sunday:
            return False
        if sunday or tier in LOW_TIERS:
            return True
        # Non-Sunday premium minutes only exist once the week's capped minutes are behind them.
        latest_low = self.low_tier_days.get(plan.week_key)
        return latest_low is None or plan.date > latest_low

    def allocate(self, tier: RateTier, minutes: int, *, sunday: bool) -> int:
        remaining = max(0, int(round(minutes)))
        requested = remaining
        ranks = max((len(plan.windows) for plan in self.plans), default=0)
        for rank in range(ranks):
            for plan in self.plans:
                if remaining <= 0:
                    return requested
                if rank >= len(plan.windows) or not self._eligible(plan, tier, sunday=sunday):
                    continue
                remaining -= self._fill(plan, plan.windows[rank], tier, remaining)
        return requested - remaining


def _clock_minutes(value: str) -> int:
    return minutes_of_day(normalize_clock(value))


def _weekday_end(day: date, config: PayrollConfig) -> int:
    end = _clock_minutes(config.work_end)
    if config.saturday_compensation and day.weekday() in config.compensation_weekdays:
        end += 60
    return end


def _baseline_normal_day(row: CardDay, config: PayrollConfig) -> CardDay:
    if row.date is None:
        return row
    weekday = row.date.weekday()
    if weekday < SATURDAY:
        return replace(
            row,
            entry1=format_clock(_clock_minutes(config.work_start)),
            exit1=format_clock(_clock_minutes(config.lunch_start)),
            entry2=format_clock(_clock_minutes(config.lunch_end)),
            exit2=format_clock(_weekday_end(row.date, config)),
        )
    if weekday == SATURDAY and not config.saturday_compensation:
        return replace(
            row,
            entry1=format_clock(_clock_minutes(config.saturday_work_start)),
            exit1=format_clock(_clock_minutes(config.saturday_work_end)),
        )
    return row


def _apply_lateness(rows: list[CardDay], lateness: int) -> tuple[list[CardDay], int]:
    remaining = max(0, int(lateness))
    result: list[CardDay] = []
    for row in rows:
        candidate = (
            remaining > 0
            and row.date is not None
            and row.date.weekday() < SATURDAY
            and not is_holiday(row.date)
            and bool(row.entry2)
            and bool(row.exit2)
        )
        if not candidate:
            result.append(row)
            continue
        start = minutes_of_day(row.entry2)
        end = minutes_of_day(row.exit2)
        available = max(0, end - start)
        cut = min(MAX_LATENESS_PER_DAY, available, remaining)
        if cut <= 0:
            result.append(row)
            continue
        result.append(replace(row, exit2=format_clock(end - cut)))
        remaining -= cut
    return result, max(0, int(lateness)) - remaining


def _day_plan(row: CardDay, config: PayrollConfig) -> _DayPlan | None:
    if row.date is None:
        return None
    weekday = row.date.weekday()
    if weekday == SUNDAY:
        night_start = max(SUNDAY_NIGHT_EARLIEST, night_cutoff_minutes(config))
        windows = [
            _Window(*SUNDAY_DAY_WINDOW),
            _Window(night_start, night_start + SUNDAY_NIGHT_LENGTH),
        ]
    else:
        if weekday == SATURDAY and not config.saturday_compensation:
            start = _clock_minutes(config.saturday_work_start)
            end = _clock_minutes(config.saturday_work_end)
        else:
            start = _clock_minutes(config.work_start)
            end = _weekday_end(row.date, config)
        windows = [
            _Window(end, end + POST_SHIFT_LENGTH),
            _Window(max(0, start - PRE_SHIFT_LENGTH), start),
        ]
    return _DayPlan(
        line=row.line,
        date=row.date,
        week_key=week_key(row.date),
        is_sunday=weekday == SUNDAY,
        windows=windows,
    )


def _consolidate_segments(segments: list[tuple[int, int]]) -> tuple[list[tuple[int, int]], bool]:
    merged: list[list[int]] = []
    for start, end in sorted(segments):
        if merged and merged[-1][1] >= start:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    if len(merged) <= MAX_SEGMENTS:
        return [(start, end) for start, end in merged], False
    first, second = merged[0], merged[1]
    third = (merged[2][0], merged[-1][1])
    return [(first[0], first[1]), (second[0], second[1]), third], True


def _render_overtime_row(row: CardDay, plan: _DayPlan | None, warnings: list[str]) -> CardDay:
    if plan is None:
        return row
    segments = plan.segments()
    if not segments:
        return row
    segments, consolidated = _consolidate_segments(segments)
    if consolidated:
        warnings.append(f"Line {row.line:02d}: too many projected periods, consolidated into {MAX_SEGMENTS}.")
    changes: dict[str, str] = {}
    for (start_field, end_field), (start, end) in zip(PAIR_FIELDS, segments):
        changes[start_field] = format_clock(start)
        changes[end_field] = format_clock(end)
    return replace(row, **changes)


def _absence_minutes(rows: list[CardDay], config: PayrollConfig) -> int:
    return sum(classify_day(row, config).totals.absence for row in rows if row.date is not None)


def _verify(
    normal_card: list[CardDay],
    overtime_card: list[CardDay],
    baseline_absence: int,
    applied: BucketTotals,
    config: PayrollConfig,
) -> list[str]:
    warnings: list[str] = []
    reclassified = classify(overtime_card, config).totals
    for tier in RateTier:
        got = reclassified.tier_minutes(tier)
        placed = applied.tier_minutes(tier)
        if got != placed:
            warnings.append(
                f"Tier {tier.value}% re-classifies as {format_duration(got)} "
                f"but {format_duration(placed)} was placed."
            )
    lateness = _absence_minutes(normal_card, config) - baseline_absence
    if lateness != applied.absence:
        warnings.append(
            f"Lateness re-classifies as {format_duration(max(0, lateness))} "
            f"but {format_duration(applied.absence)} was placed."
        )
    return warnings


def project(aggregates: PayslipAggregates, reference: str, config: PayrollConfig | None) -> Projection:
    """Synthesize normal and overtime cards whose classification reproduces payslip totals.

    Best effort: minutes that do not fit the candidate windows are reported as warnings and the
    projected cards are re-classified so any drift from the placed totals is reported too.
    """
    if config is None:
        raise SettingsRequiredError("Payroll configuration is required to project a payslip.")
    month, year = parse_reference(reference)
    cycle_start_day = config.effective_cycle_start_day
    warnings: list[str] = []

    baseline = [
        _baseline_normal_day(row, config)
        for row in build_card_template(CardType.NORMAL, month, year, cycle_start_day)
    ]
    normal_card, lateness_applied = _apply_lateness(baseline, aggregates.lateness)
    lateness_missing = max(0, aggregates.lateness) - lateness_applied
    if lateness_missing > 0:
        warnings.append(f"Could not distribute {format_duration(lateness_missing)} of lateness on the normal card.")

    overtime_template = build_card_template(CardType.OVERTIME, month, year, cycle_start_day)
    plans_by_line = {row.line: _day_plan(row, config) for row in overtime_template}
    ordered_plans = sorted((plan for plan in plans_by_line.values() if plan is not None), key=lambda plan: plan.date)
    allocator = _Allocator(ordered_plans, config)

    # Sunday minutes do not count towards the weekly cap, so they go first.
    sunday_125 = allocator.allocate(RateTier.TIER_125, aggregates.tier_minutes(RateTier.TIER_125), sunday=True)
    sunday_100 = allocator.allocate(RateTier.TIER_100, aggregates.tier_minutes(RateTier.TIER_100), sunday=True)
    placed_75 = allocator.allocate(RateTier.TIER_75, aggregates.tier_minutes(RateTier.TIER_75), sunday=False)
    placed_50 = allocator.allocate(RateTier.TIER_50, aggregates.tier_minutes(RateTier.TIER_50), sunday=False)
    weekday_125 = allocator.allocate(
        RateTier.TIER_125, aggregates.tier_minutes(RateTier.TIER_125) - sunday_125, sunday=False
    )
    weekday_100 = allocator.allocate(
        RateTier.TIER_100, aggregates.tier_minutes(RateTier.TIER_100) - sunday_100, sunday=False
    )

    applied = BucketTotals(
        tier_50=placed_50,
        tier_75=placed_75,
        tier_100=sunday_100 + weekday_100,
        tier_125=sunday_125 + weekday_125,
        absence=lateness_applied,
    )
    for tier in RateTier:
        missing = aggregates.tier_minutes(tier) - applied.tier_minutes(tier)
        if missing > 0:
            warnings.append(f"Tier {tier.value}% not allocated: {format_duration(missing)} left over.")
            logger.warning(
                "projection_shortfall",
                extra={"reference": reference, "tier": tier.value, "missing_minutes": missing},
            )
    if lateness_missing > 0:
        logger.warning(
            "projection_shortfall",
            extra={"reference": reference, "tier": "lateness", "missing_minutes": lateness_missing},
        )

    overtime_card = [
        _render_overtime_row(row, plans_by_line[row.line], warnings) for row in overtime_template
    ]
    warnings.extend(
        _verify(normal_card, overtime_card, _absence_minutes(baseline, config), applied, config)
    )

    return Projection(
        normal_card=normal_card,
        overtime_card=overtime_card,
        applied=applied,
        warnings=warnings,
    )
