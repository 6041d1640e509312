from __future__ import annotations

import logging

from ponto.errors import SettingsRequiredError
from ponto.models import AdvancePayment, BucketTotals, PayrollConfig, PayrollSettlement, RateTier
from ponto.services.holidays import count_business_and_rest_days
from ponto.services.journey import validate_competence
from ponto.services.weekly import build_rates

logger = logging.getLogger("ponto.payroll")

# (upper limit, rate); each bracket taxes only its own span.
INSS_BRACKETS: tuple[tuple[float, float], ...] = (
    (1621.00, 0.075),
    (2902.84, 0.09),
    (4354.27, 0.12),
    (8475.55, 0.14),
)
INSS_CEILING = INSS_BRACKETS[-1][0]

IRRF_DEPENDENT_DEDUCTION = 189.59

# (upper limit, rate, deduction)
IRRF_TABLE: tuple[tuple[float, float, float], ...] = (
    (2428.80, 0.0, 0.0),
    (2826.65, 0.075, 182.16),
    (3751.05, 0.15, 394.16),
    (4664.68, 0.225, 675.49),
    (float("inf"), 0.275, 908.73),
)

REDUCER_EXEMPT_LIMIT = 5000.00
REDUCER_PHASE_OUT_LIMIT = 7350.00
REDUCER_CONSTANT = 978.62
REDUCER_FACTOR = 0.133145

ADVANCE_DEFAULT_IR_RATE = 0.275


def calc_inss(gross: float) -> tuple[float, float]:
    """Return (contribution base, contribution) for the progressive INSS table."""
    base = min(max(0.0, gross), INSS_CEILING)
    remaining = base
    previous_limit = 0.0
    contribution = 0.0
    for limit, rate in INSS_BRACKETS:
        if remaining <= 0:
            break
        span = min(remaining, limit - previous_limit)
        contribution += span * rate
        remaining -= span
        previous_limit = limit
    return base, contribution


def calc_irrf_traditional(base: float) -> float:
    for limit, rate, deduction in IRRF_TABLE:
        if base <= limit:
            return max(0.0, base * rate - deduction)
    return 0.0


def calc_irrf_reducer(gross: float, traditional: float) -> float:
    if gross <= REDUCER_EXEMPT_LIMIT:
        return traditional
    if gross <= REDUCER_PHASE_OUT_LIMIT:
        return max(0.0, REDUCER_CONSTANT - REDUCER_FACTOR * gross)
    return 0.0


def resolve_advance(config: PayrollConfig, advance: AdvancePayment | None) -> tuple[float, float]:
    if advance is not None and advance.gross > 0:
        return float(advance.gross), float(advance.ir_withheld or 0)

    gross = max(0.0, float(config.base_salary or 0)) * (config.advance_percent / 100)
    if advance is not None and advance.ir_withheld > 0:
        return gross, float(advance.ir_withheld)
    if config.advance_fixed_ir > 0:
        return gross, float(config.advance_fixed_ir)
    return gross, round(gross * ADVANCE_DEFAULT_IR_RATE, 2)


def _proportional_dsr(value: float, business_days: int, rest_days: int) -> float:
    if business_days <= 0:
        return 0.0
    return value / business_days * rest_days


def settle(
    totals: BucketTotals,
    lateness_minutes: int,
    month: int,
    year: int,
    config: PayrollConfig | None,
    *,
    advance: AdvancePayment | None = None,
) -> PayrollSettlement:
    if config is None:
        raise SettingsRequiredError("Payroll configuration is required to settle a competence.")
    validate_competence(month, year)

    calendar = count_business_and_rest_days(month, year, config.effective_cycle_start_day)
    business_days = calendar.business_days
    rest_days = calendar.sundays_and_holidays
    rates = build_rates(config)
    base_salary = max(0.0, float(config.base_salary or 0))

    tier_values = {
        tier: max(0, totals.tier_minutes(tier)) / 60 * rates.for_tier(tier) for tier in RateTier
    }
    overtime_value = sum(tier_values.values())
    dsr_value = _proportional_dsr(overtime_value, business_days, rest_days)
    gross = base_salary + overtime_value + dsr_value

    lateness = max(0, int(lateness_minutes or 0))
    lateness_value = lateness / 60 * rates.hourly_rate
    lateness_dsr = _proportional_dsr(lateness_value, business_days, rest_days)

    inss_base, inss = calc_inss(gross)
    ir_base = gross - inss - max(0, config.dependents) * IRRF_DEPENDENT_DEDUCTION
    ir_traditional = calc_irrf_traditional(ir_base)
    ir_reducer = calc_irrf_reducer(gross, ir_traditional)
    ir_total = max(0.0, ir_traditional - ir_reducer)

    advance_gross, advance_ir = resolve_advance(config, advance)
    advance_net = round(advance_gross - advance_ir, 2)
    ir_closing = max(0.0, round(ir_total - advance_ir, 2))
    ir_month_total = round(advance_ir + ir_closing, 2)

    deductions_real = lateness_value + lateness_dsr + inss + ir_closing + advance_gross
    total_deductions = round(deductions_real, 2)
    rounding = round(total_deductions - deductions_real, 2)
    net = round(gross - total_deductions, 2)
    total_received = round(net + advance_net, 2)

    settlement = PayrollSettlement(
        month=month,
        year=year,
        business_days=business_days,
        rest_days=rest_days,
        holidays=calendar.holidays,
        hourly_rate=round(rates.hourly_rate, 2),
        rates=rates,
        value_50=round(tier_values[RateTier.TIER_50], 2),
        value_75=round(tier_values[RateTier.TIER_75], 2),
        value_100=round(tier_values[RateTier.TIER_100], 2),
        value_125=round(tier_values[RateTier.TIER_125], 2),
        overtime_value=round(overtime_value, 2),
        dsr_value=round(dsr_value, 2),
        gross=round(gross, 2),
        inss_base=round(inss_base, 2),
        inss=round(inss, 2),
        ir_base=round(max(0.0, ir_base), 2),
        ir_traditional=round(ir_traditional, 2),
        ir_reducer=round(ir_reducer, 2),
        ir_total=round(ir_total, 2),
        advance_gross=round(advance_gross, 2),
        advance_ir=round(advance_ir, 2),
        advance_net=advance_net,
        ir_closing=ir_closing,
        ir_month_total=ir_month_total,
        lateness_minutes=lateness,
        lateness_value=round(lateness_value, 2),
        lateness_dsr=round(lateness_dsr, 2),
        total_deductions=total_deductions,
        rounding=rounding,
        net=net,
        total_received=total_received,
    )
    logger.info(
        "settlement_complete",
        extra={
            "month": month,
            "year": year,
            "gross": settlement.gross,
            "inss": settlement.inss,
            "ir_total": settlement.ir_total,
            "net": settlement.net,
        },
    )
    return settlement
