from datetime import date
import unittest

from ponto.models import CardDay, CardType, PayrollConfig, RateTier
from ponto.services.overtime_calc import classify_day, classify_minute, is_night_minute

CONFIG = PayrollConfig(base_salary=2200)

SUNDAY = date(2026, 3, 1)
MONDAY = date(2026, 3, 2)
TUESDAY = date(2026, 3, 3)


def _overtime_day(day: date, start: str, end: str) -> CardDay:
    return CardDay(line=day.day, date=day, card_type=CardType.OVERTIME, entry1=start, exit1=end)


def _normal_day(day: date, *periods: str, annotated: bool = False) -> CardDay:
    fields = dict(zip(("entry1", "exit1", "entry2", "exit2"), periods))
    return CardDay(line=day.day, date=day, is_manual_annotation=annotated, **fields)


class NightMinuteTests(unittest.TestCase):
    def test_night_window(self) -> None:
        self.assertTrue(is_night_minute(22 * 60, 22 * 60))
        self.assertTrue(is_night_minute(4 * 60 + 59, 22 * 60))
        self.assertFalse(is_night_minute(5 * 60, 22 * 60))
        self.assertFalse(is_night_minute(21 * 60 + 59, 22 * 60))

    def test_classify_minute_tiers(self) -> None:
        def tier(minute: int, *, sunday: bool = False, accumulator: int = 0, limit: int = 0) -> RateTier:
            return classify_minute(
                minute_of_day=minute,
                is_sunday=sunday,
                week_accumulator=accumulator,
                weekly_limit_minutes=limit,
                cutoff_minutes=22 * 60,
            )

        self.assertEqual(tier(600), RateTier.TIER_50)
        self.assertEqual(tier(23 * 60), RateTier.TIER_75)
        self.assertEqual(tier(600, sunday=True), RateTier.TIER_100)
        self.assertEqual(tier(23 * 60, sunday=True), RateTier.TIER_125)
        self.assertEqual(tier(600, accumulator=599, limit=600), RateTier.TIER_50)
        self.assertEqual(tier(600, accumulator=600, limit=600), RateTier.TIER_100)
        self.assertEqual(tier(23 * 60, accumulator=600, limit=600), RateTier.TIER_125)
        self.assertEqual(tier(600, accumulator=100_000), RateTier.TIER_50)


class NormalCardTests(unittest.TestCase):
    def test_full_journey_has_no_overtime_or_lateness(self) -> None:
        ctx = classify_day(_normal_day(TUESDAY, "08:00", "12:00", "13:00", "17:00"), CONFIG)

        self.assertEqual(ctx.worked_minutes, 480)
        self.assertEqual(ctx.expected_minutes, 480)
        self.assertEqual(ctx.overtime_minutes, 0)
        self.assertEqual(ctx.totals.absence, 0)
        self.assertEqual(ctx.totals.banked, 0)

    def test_excess_goes_to_banked_hours(self) -> None:
        ctx = classify_day(_normal_day(TUESDAY, "08:00", "12:00", "13:00", "19:00"), CONFIG)

        self.assertEqual(ctx.totals.banked, 120)
        self.assertEqual(ctx.totals.overtime_minutes, 0)

    def test_sunday_on_normal_card_is_banked(self) -> None:
        ctx = classify_day(_normal_day(SUNDAY, "08:00", "12:00"), CONFIG)

        self.assertEqual(ctx.overtime_minutes, 240)
        self.assertEqual(ctx.totals.banked, 240)
        self.assertEqual(ctx.totals.tier_100, 0)
        self.assertEqual(ctx.totals.absence, 0)

    def test_partial_day_is_lateness(self) -> None:
        ctx = classify_day(_normal_day(TUESDAY, "08:00", "12:00", "13:00", "16:30"), CONFIG)

        self.assertEqual(ctx.totals.absence, 30)

    def test_blank_day_is_full_absence(self) -> None:
        ctx = classify_day(_normal_day(TUESDAY), CONFIG)

        self.assertEqual(ctx.overtime_minutes, 0)
        self.assertEqual(ctx.totals.absence, 480)

    def test_annotated_day_never_produces_absence(self) -> None:
        blank = classify_day(_normal_day(TUESDAY, annotated=True), CONFIG)
        partial = classify_day(_normal_day(TUESDAY, "08:00", "12:00", annotated=True), CONFIG)

        self.assertEqual(blank.totals.absence, 0)
        self.assertEqual(partial.totals.absence, 0)

    def test_annotated_day_still_banks_excess(self) -> None:
        ctx = classify_day(_normal_day(TUESDAY, "08:00", "12:00", "13:00", "18:00", annotated=True), CONFIG)

        self.assertEqual(ctx.totals.banked, 60)

    def test_sunday_blank_is_not_absence(self) -> None:
        ctx = classify_day(_normal_day(SUNDAY), CONFIG)

        self.assertEqual(ctx.totals.absence, 0)

    def test_holiday_is_never_absence(self) -> None:
        tiradentes = date(2026, 4, 21)

        self.assertEqual(classify_day(_normal_day(tiradentes), CONFIG).totals.absence, 0)
        self.assertEqual(classify_day(_normal_day(tiradentes, "08:00", "12:00"), CONFIG).totals.absence, 0)

    def test_holiday_excess_is_still_banked(self) -> None:
        ctx = classify_day(_normal_day(date(2026, 4, 21), "08:00", "12:00", "13:00", "19:00"), CONFIG)

        self.assertEqual(ctx.totals.banked, 120)
        self.assertEqual(ctx.totals.absence, 0)


class OvertimeCardTests(unittest.TestCase):
    def test_sunday_daytime_is_tier_100(self) -> None:
        ctx = classify_day(_overtime_day(SUNDAY, "08:00", "14:00"), CONFIG, week_accumulator=42)

        self.assertEqual(ctx.totals.tier_100, 360)
        self.assertEqual(ctx.totals.overtime_minutes, 360)
        self.assertEqual(ctx.week_accumulator, 42)

    def test_evening_splits_at_night_cutoff(self) -> None:
        ctx = classify_day(_overtime_day(MONDAY, "20:00", "23:00"), CONFIG)

        self.assertEqual(ctx.totals.tier_50, 120)
        self.assertEqual(ctx.totals.tier_75, 60)
        self.assertEqual(ctx.week_accumulator, 180)

    def test_early_morning_counts_as_night(self) -> None:
        ctx = classify_day(_overtime_day(TUESDAY, "03:00", "06:00"), CONFIG)

        self.assertEqual(ctx.totals.tier_75, 120)
        self.assertEqual(ctx.totals.tier_50, 60)

    def test_configured_night_cutoff(self) -> None:
        config = PayrollConfig(base_salary=2200, night_cutoff="21:00")

        ctx = classify_day(_overtime_day(MONDAY, "20:00", "23:00"), config)

        self.assertEqual(ctx.totals.tier_50, 60)
        self.assertEqual(ctx.totals.tier_75, 120)

    def test_cap_reached_mid_day_switches_to_premium(self) -> None:
        config = PayrollConfig(base_salary=2200, weekly_limit_hours=10)

        ctx = classify_day(_overtime_day(MONDAY, "10:00", "13:00"), config, week_accumulator=540)

        self.assertEqual(ctx.totals.tier_50, 60)
        self.assertEqual(ctx.totals.tier_100, 120)
        self.assertEqual(ctx.week_accumulator, 720)

    def test_sum_of_tiers_matches_overtime(self) -> None:
        ctx = classify_day(_overtime_day(MONDAY, "18:00", "02:00"), CONFIG)

        self.assertEqual(ctx.overtime_minutes, 480)
        self.assertEqual(ctx.totals.overtime_minutes, ctx.overtime_minutes)

    def test_day_without_punches_is_empty(self) -> None:
        ctx = classify_day(CardDay(line=2, date=MONDAY, card_type=CardType.OVERTIME), CONFIG)

        self.assertEqual(ctx.overtime_minutes, 0)
        self.assertEqual(ctx.totals.overtime_minutes, 0)
        self.assertEqual(ctx.totals.absence, 0)


if __name__ == "__main__":
    unittest.main()
