from __future__ import annotations

import logging
from datetime import date
from math import ceil
from typing import Iterable

from ponto.errors import SettingsRequiredError
from ponto.models import (
    BucketTotals,
    CardDay,
    Classification,
    DayResult,
    PayrollConfig,
    RatePack,
    WeeklySummary,
)
from ponto.services.cards import repair_overnight_splits
from ponto.services.overtime_calc import classify_day

logger = logging.getLogger("ponto.classification")


def week_number(day: date) -> int:
    # Week 1 runs from the 1st through the first Sunday; later weeks are Monday-Sunday blocks.
    first_sunday = 7 - date(day.year, day.month, 1).weekday()
    if day.day <= first_sunday:
        return 1
    return 1 + ceil((day.day - first_sunday) / 7)


def week_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}-W{week_number(day)}"


def _week_sort_key(day: date) -> tuple[int, int, int]:
    return day.year, day.month, week_number(day)


def build_rates(config: PayrollConfig) -> RatePack:
    hourly_rate = max(0.0, float(config.base_salary or 0)) / config.effective_monthly_hours
    return RatePack(
        hourly_rate=hourly_rate,
        rate_50=hourly_rate * (1 + config.percent_50 / 100),
        rate_75=hourly_rate * (1 + (config.percent_50 + config.percent_night) / 100),
        rate_100=hourly_rate * (1 + config.percent_100 / 100),
        rate_125=hourly_rate * (1 + (config.percent_100 + config.percent_night) / 100),
    )


def _group_by_week(days: list[CardDay]) -> list[list[CardDay]]:
    groups: dict[tuple[int, int, int], list[CardDay]] = {}
    for day in days:
        groups.setdefault(_week_sort_key(day.date), []).append(day)
    return [
        sorted(groups[key], key=lambda item: (item.date, item.is_overtime_card, item.line))
        for key in sorted(groups)
    ]


def classify(entries: Iterable[CardDay], config: PayrollConfig | None) -> Classification:
    if config is None:
        raise SettingsRequiredError("Payroll configuration is required to classify card entries.")

    dated = [day for day in repair_overnight_splits(entries) if day.date is not None]
    rates = build_rates(config)
    grand = BucketTotals()
    summaries: list[WeeklySummary] = []
    day_results: list[DayResult] = []

    for week_days in _group_by_week(dated):
        key = week_key(week_days[0].date)
        week_totals = BucketTotals()
        accumulator = 0
        for day in week_days:
            ctx = classify_day(day, config, week_accumulator=accumulator)
            accumulator = ctx.week_accumulator
            week_totals.merge(ctx.totals)
            day_results.append(
                DayResult(
                    date=day.date,
                    line=day.line,
                    card_type=day.card_type,
                    week_key=key,
                    worked_minutes=ctx.worked_minutes,
                    expected_minutes=ctx.expected_minutes,
                    overtime_minutes=ctx.overtime_minutes,
                    totals=ctx.totals,
                    is_manual_annotation=day.is_manual_annotation,
                )
            )

        grand.merge(week_totals)
        summaries.append(
            WeeklySummary(
                key=key,
                start=week_days[0].date,
                end=week_days[-1].date,
                totals=week_totals,
                value=round(rates.value_of(week_totals), 2),
            )
        )

    total_value = round(rates.value_of(grand), 2)
    logger.info(
        "classification_complete",
        extra={
            "days": len(day_results),
            "weeks": len(summaries),
            "tier_50": grand.tier_50,
            "tier_75": grand.tier_75,
            "tier_100": grand.tier_100,
            "tier_125": grand.tier_125,
            "banked": grand.banked,
            "absence": grand.absence,
            "total_value": total_value,
        },
    )
    return Classification(
        weekly_summaries=summaries,
        totals=grand,
        rates=rates,
        total_value=total_value,
        days=day_results,
    )
