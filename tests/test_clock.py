import unittest

from ponto.services.clock import (
    duration,
    format_clock,
    format_duration,
    format_hours_clock,
    minutes_of_day,
    normalize_clock,
    normalize_typed_clock,
)


class ClockArithmeticTests(unittest.TestCase):
    def test_minutes_of_day_parses_hhmm(self) -> None:
        self.assertEqual(minutes_of_day("08:30"), 510)
        self.assertEqual(minutes_of_day("0:05"), 5)

    def test_minutes_of_day_invalid_input_is_zero(self) -> None:
        self.assertEqual(minutes_of_day(""), 0)
        self.assertEqual(minutes_of_day(None), 0)
        self.assertEqual(minutes_of_day("8h30"), 0)
        self.assertEqual(minutes_of_day("ab:cd"), 0)

    def test_normalize_clock_rejects_malformed_values(self) -> None:
        self.assertEqual(normalize_clock(" 07:45 "), "07:45")
        self.assertEqual(normalize_clock("7.45"), "")
        self.assertEqual(normalize_clock(None), "")

    def test_out_of_range_clocks_are_absent(self) -> None:
        self.assertEqual(normalize_clock("17:75"), "")
        self.assertEqual(normalize_clock("25:10"), "")
        self.assertEqual(normalize_clock("24:00"), "")
        self.assertEqual(normalize_clock("23:59"), "23:59")
        self.assertEqual(minutes_of_day("17:75"), 0)
        self.assertEqual(minutes_of_day("25:10"), 0)
        self.assertEqual(duration("08:00", "17:75"), 0)
        self.assertEqual(duration("25:10", "12:00"), 0)

    def test_duration_wraps_past_midnight(self) -> None:
        self.assertEqual(duration("08:00", "12:00"), 240)
        self.assertEqual(duration("22:00", "02:00"), 240)

    def test_duration_with_missing_side_is_zero(self) -> None:
        self.assertEqual(duration("08:00", ""), 0)
        self.assertEqual(duration("8h", "10:00"), 0)

    def test_format_clock_is_modulo_one_day(self) -> None:
        self.assertEqual(format_clock(510), "08:30")
        self.assertEqual(format_clock(1440), "00:00")
        self.assertEqual(format_clock(1500), "01:00")

    def test_format_duration_keeps_hours_above_one_day(self) -> None:
        self.assertEqual(format_duration(1650), "27:30")
        self.assertEqual(format_duration(-5), "00:00")

    def test_format_hours_clock(self) -> None:
        self.assertEqual(format_hours_clock(425), "7h05")
        self.assertEqual(format_hours_clock(0), "0h00")


class TypedClockTests(unittest.TestCase):
    def test_digits_only_input(self) -> None:
        self.assertEqual(normalize_typed_clock("830"), "08:30")
        self.assertEqual(normalize_typed_clock("8"), "08:00")
        self.assertEqual(normalize_typed_clock("1745"), "17:45")

    def test_values_are_clamped(self) -> None:
        self.assertEqual(normalize_typed_clock("1975"), "19:59")
        self.assertEqual(normalize_typed_clock("2530"), "23:30")

    def test_colon_input(self) -> None:
        self.assertEqual(normalize_typed_clock("8:3"), "08:03")
        self.assertEqual(normalize_typed_clock("08:30"), "08:30")

    def test_empty_stays_empty(self) -> None:
        self.assertEqual(normalize_typed_clock(""), "")
        self.assertEqual(normalize_typed_clock(None), "")
        self.assertEqual(normalize_typed_clock("  "), "")


if __name__ == "__main__":
    unittest.main()
