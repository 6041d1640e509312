from datetime import date
import unittest

from ponto.models import CardDay, CardType
from ponto.services.cards import (
    build_card_template,
    ensure_full_card,
    last_exit_minutes,
    repair_overnight_splits,
    worked_minutes,
)


class CardPunchTests(unittest.TestCase):
    def test_worked_minutes_skips_incomplete_pairs(self) -> None:
        day = CardDay(
            line=3,
            date=date(2026, 3, 3),
            entry1="08:00",
            exit1="12:00",
            entry2="13:00",
            exit2="17:00",
            entry_extra="18:00",
        )

        self.assertEqual(worked_minutes(day), 480)
        self.assertEqual(last_exit_minutes(day), 17 * 60)

    def test_malformed_clock_counts_as_absent(self) -> None:
        day = CardDay(line=3, date=date(2026, 3, 3), entry1="08:00", exit1="12h00")

        self.assertEqual(worked_minutes(day), 0)
        self.assertEqual(last_exit_minutes(day), 0)


class OvernightRepairTests(unittest.TestCase):
    def test_split_period_is_joined_on_first_row(self) -> None:
        first = CardDay(
            line=2,
            date=date(2026, 3, 2),
            card_type=CardType.OVERTIME,
            entry_extra="22:00",
        )
        second = CardDay(
            line=3,
            date=date(2026, 3, 3),
            card_type=CardType.OVERTIME,
            exit_extra="02:00",
        )

        repaired = repair_overnight_splits([second, first])

        self.assertEqual(repaired[1].exit_extra, "02:00")
        self.assertEqual(repaired[0].exit_extra, "")
        self.assertEqual(first.exit_extra, "")
        self.assertEqual(second.exit_extra, "02:00")

    def test_rows_of_other_card_are_not_joined(self) -> None:
        first = CardDay(line=2, date=date(2026, 3, 2), card_type=CardType.OVERTIME, entry1="22:00")
        other = CardDay(line=3, date=date(2026, 3, 3), card_type=CardType.NORMAL, exit1="02:00")

        repaired = repair_overnight_splits([first, other])

        self.assertEqual(repaired, [first, other])


class CardTemplateTests(unittest.TestCase):
    def test_template_always_has_31_lines(self) -> None:
        card = build_card_template(CardType.NORMAL, 2, 2026)

        self.assertEqual([day.line for day in card], list(range(1, 32)))
        self.assertEqual(card[0].date, date(2026, 2, 1))
        self.assertIsNone(card[28].date)
        self.assertIsNone(card[30].date)

    def test_template_with_cycle_start_day(self) -> None:
        card = build_card_template(CardType.OVERTIME, 3, 2026, 15)

        self.assertEqual(card[9].date, date(2026, 3, 10))
        self.assertEqual(card[19].date, date(2026, 2, 20))
        self.assertIsNone(card[29].date)
        self.assertTrue(all(day.card_type == CardType.OVERTIME for day in card))

    def test_ensure_full_card_fills_missing_lines(self) -> None:
        punched = CardDay(line=5, date=date(2026, 3, 5), entry1="08:00", exit1="12:00")
        foreign = CardDay(line=6, date=date(2026, 3, 6), card_type=CardType.OVERTIME, entry1="18:00")

        card = ensure_full_card([punched, foreign], card_type=CardType.NORMAL, month=3, year=2026)

        self.assertEqual(len(card), 31)
        self.assertIs(card[4], punched)
        self.assertEqual(card[5].entry1, "")
        self.assertEqual(card[5].date, date(2026, 3, 6))


if __name__ == "__main__":
    unittest.main()
