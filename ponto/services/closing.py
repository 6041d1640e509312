from __future__ import annotations

from typing import Iterable

from ponto.errors import SettingsRequiredError
from ponto.models import AdvancePayment, CardDay, MonthClosing, PayrollConfig
from ponto.services.bank_ledger import build_bank_ledger
from ponto.services.journey import validate_competence
from ponto.services.payroll import settle
from ponto.services.weekly import classify


def close_month(
    entries: Iterable[CardDay],
    config: PayrollConfig | None,
    *,
    month: int,
    year: int,
    advance: AdvancePayment | None = None,
) -> MonthClosing:
    if config is None:
        raise SettingsRequiredError("Payroll configuration is required to close a competence.")
    validate_competence(month, year)

    classification = classify(entries, config)
    ledger = build_bank_ledger(classification)
    settlement = settle(
        classification.totals,
        classification.totals.absence,
        month,
        year,
        config,
        advance=advance,
    )
    return MonthClosing(
        month=month,
        year=year,
        classification=classification,
        ledger=ledger,
        settlement=settlement,
    )
