from datetime import date
import unittest

from ponto.errors import InvalidReferenceError, SettingsRequiredError
from ponto.models import AdvancePayment, BucketTotals, PayrollConfig
from ponto.services.payroll import (
    calc_inss,
    calc_irrf_reducer,
    calc_irrf_traditional,
    resolve_advance,
    settle,
)


class TaxTableTests(unittest.TestCase):
    def test_inss_is_marginal(self) -> None:
        base, contribution = calc_inss(3000)

        self.assertEqual(base, 3000)
        self.assertAlmostEqual(contribution, 248.60, places=2)

    def test_inss_is_capped_at_the_ceiling(self) -> None:
        base, contribution = calc_inss(10000)

        self.assertAlmostEqual(base, 8475.55)
        self.assertAlmostEqual(contribution, 988.09, places=2)

    def test_inss_of_nothing(self) -> None:
        self.assertEqual(calc_inss(0), (0.0, 0.0))
        self.assertEqual(calc_inss(-50), (0.0, 0.0))

    def test_irrf_traditional_brackets(self) -> None:
        self.assertEqual(calc_irrf_traditional(2000), 0.0)
        self.assertAlmostEqual(calc_irrf_traditional(2751.40), 24.195, places=3)
        self.assertAlmostEqual(calc_irrf_traditional(10000), 10000 * 0.275 - 908.73, places=2)

    def test_irrf_reducer_phases_out(self) -> None:
        self.assertEqual(calc_irrf_reducer(4000, 37.5), 37.5)
        self.assertAlmostEqual(calc_irrf_reducer(6000, 500), 179.75, places=2)
        self.assertEqual(calc_irrf_reducer(8000, 900), 0.0)


class AdvanceTests(unittest.TestCase):
    def assertAdvance(self, resolved: tuple[float, float], gross: float, ir: float) -> None:
        self.assertAlmostEqual(resolved[0], gross)
        self.assertAlmostEqual(resolved[1], ir)

    def test_default_advance_withholds_flat_rate(self) -> None:
        self.assertAdvance(resolve_advance(PayrollConfig(base_salary=3000), None), 1200, 330)

    def test_explicit_advance_is_used_as_is(self) -> None:
        advance = AdvancePayment(gross=1000, ir_withheld=50)

        self.assertAdvance(resolve_advance(PayrollConfig(base_salary=3000), advance), 1000, 50)

    def test_supplied_ir_without_gross(self) -> None:
        advance = AdvancePayment(gross=0, ir_withheld=100)

        self.assertAdvance(resolve_advance(PayrollConfig(base_salary=3000), advance), 1200, 100)

    def test_fixed_ir_from_config(self) -> None:
        config = PayrollConfig(base_salary=3000, advance_fixed_ir=80)

        self.assertAdvance(resolve_advance(config, None), 1200, 80)


class SettleTests(unittest.TestCase):
    def test_salary_only_competence(self) -> None:
        result = settle(BucketTotals(), 0, 3, 2026, PayrollConfig(base_salary=3000))

        self.assertEqual(result.business_days, 22)
        self.assertEqual(result.rest_days, 5)
        self.assertEqual(result.gross, 3000)
        self.assertAlmostEqual(result.inss, 248.60)
        self.assertAlmostEqual(result.ir_traditional, 24.20)
        self.assertAlmostEqual(result.ir_reducer, 24.20)
        self.assertEqual(result.ir_total, 0)
        self.assertAlmostEqual(result.advance_gross, 1200)
        self.assertAlmostEqual(result.advance_ir, 330)
        self.assertAlmostEqual(result.advance_net, 870)
        self.assertEqual(result.ir_closing, 0)
        self.assertAlmostEqual(result.ir_month_total, 330)
        self.assertAlmostEqual(result.total_deductions, 1448.6)
        self.assertAlmostEqual(result.net, 1551.4)
        self.assertAlmostEqual(result.total_received, 2421.4)

    def test_overtime_and_dsr(self) -> None:
        result = settle(BucketTotals(tier_50=600), 0, 3, 2026, PayrollConfig(base_salary=2200))

        self.assertAlmostEqual(result.hourly_rate, 10.0)
        self.assertAlmostEqual(result.value_50, 150.0)
        self.assertAlmostEqual(result.overtime_value, 150.0)
        self.assertAlmostEqual(result.dsr_value, 34.09)
        self.assertAlmostEqual(result.gross, 2384.09)

    def test_lateness_discount_and_dsr(self) -> None:
        result = settle(BucketTotals(), 60, 3, 2026, PayrollConfig(base_salary=2200))

        self.assertEqual(result.lateness_minutes, 60)
        self.assertAlmostEqual(result.lateness_value, 10.0)
        self.assertAlmostEqual(result.lateness_dsr, 2.27)

    def test_holidays_listed_for_the_window(self) -> None:
        result = settle(BucketTotals(), 0, 4, 2026, PayrollConfig(base_salary=2200))

        self.assertIn(date(2026, 4, 3), result.holidays)
        self.assertIn(date(2026, 4, 21), result.holidays)

    def test_rounded_figures_stay_consistent(self) -> None:
        totals = BucketTotals(tier_50=437, tier_75=91, tier_100=233, tier_125=17)

        result = settle(totals, 37, 5, 2026, PayrollConfig(base_salary=4123.45, dependents=2))

        self.assertAlmostEqual(result.net, result.gross - result.total_deductions, delta=0.011)
        self.assertAlmostEqual(result.total_received, round(result.net + result.advance_net, 2))
        self.assertAlmostEqual(result.ir_month_total, round(result.advance_ir + result.ir_closing, 2))
        self.assertGreaterEqual(result.ir_closing, 0)
        self.assertGreaterEqual(result.ir_base, 0)

    def test_more_dependents_never_raise_income_tax(self) -> None:
        salaries = (2000, 2500, 2900, 3300, 3800, 4300, 4800, 5000, 5001, 6000, 7350, 7351, 9000, 12000)
        for salary in salaries:
            due = [
                settle(BucketTotals(), 0, 3, 2026, PayrollConfig(base_salary=salary, dependents=dependents)).ir_total
                for dependents in range(6)
            ]
            with self.subTest(salary=salary):
                for fewer, more in zip(due, due[1:]):
                    self.assertLessEqual(more, fewer)

    def test_missing_config_is_fatal(self) -> None:
        with self.assertRaises(SettingsRequiredError):
            settle(BucketTotals(), 0, 3, 2026, None)

    def test_invalid_month_is_rejected(self) -> None:
        with self.assertRaises(InvalidReferenceError):
            settle(BucketTotals(), 0, 13, 2026, PayrollConfig(base_salary=2200))


if __name__ == "__main__":
    unittest.main()
