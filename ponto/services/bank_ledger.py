from __future__ import annotations

from ponto.models import BankLedger, CardType, Classification, DayResult, LedgerEntry, LedgerKind
from ponto.services.clock import format_duration


def _entry_for(day: DayResult, balance: int) -> LedgerEntry | None:
    if day.totals.banked > 0:
        minutes = day.totals.banked
        return LedgerEntry(
            date=day.date,
            line=day.line,
            kind=LedgerKind.EXTRA,
            minutes=minutes,
            balance_minutes=balance + minutes,
            description=f"Worked {format_duration(day.worked_minutes)} against {format_duration(day.expected_minutes)}",
        )
    if day.totals.absence > 0:
        minutes = day.totals.absence
        kind = LedgerKind.LATENESS if day.worked_minutes > 0 else LedgerKind.ABSENCE
        return LedgerEntry(
            date=day.date,
            line=day.line,
            kind=kind,
            minutes=-minutes,
            balance_minutes=balance - minutes,
            description=f"Missing {format_duration(minutes)} of {format_duration(day.expected_minutes)}",
        )
    return None


def build_bank_ledger(classification: Classification) -> BankLedger:
    """Credits and debits of the normal card in date order with the running balance.

    Annotated days never reach the ledger as debits because the classifier gives them no absence.
    """
    entries: list[LedgerEntry] = []
    balance = 0
    credit = 0
    debit = 0
    normal_days = sorted(
        (day for day in classification.days if day.card_type == CardType.NORMAL),
        key=lambda day: (day.date, day.line),
    )
    for day in normal_days:
        entry = _entry_for(day, balance)
        if entry is None:
            continue
        entries.append(entry)
        balance = entry.balance_minutes
        if entry.minutes > 0:
            credit += entry.minutes
        else:
            debit -= entry.minutes
    return BankLedger(entries=entries, credit_minutes=credit, debit_minutes=debit)
