from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date


class CardType(str, enum.Enum):
    NORMAL = "normal"
    OVERTIME = "overtime"


class RateTier(str, enum.Enum):
    TIER_50 = "50"
    TIER_75 = "75"
    TIER_100 = "100"
    TIER_125 = "125"


class LedgerKind(str, enum.Enum):
    EXTRA = "EXTRA"
    LATENESS = "LATENESS"
    ABSENCE = "ABSENCE"


PUNCH_FIELDS = ("entry1", "exit1", "entry2", "exit2", "entry_extra", "exit_extra")
PAIR_FIELDS = (("entry1", "exit1"), ("entry2", "exit2"), ("entry_extra", "exit_extra"))
CARD_LINES = 31


@dataclass(frozen=True)
class CardDay:
    line: int
    date: date | None
    card_type: CardType = CardType.NORMAL
    entry1: str = ""
    exit1: str = ""
    entry2: str = ""
    exit2: str = ""
    entry_extra: str = ""
    exit_extra: str = ""
    is_manual_annotation: bool = False

    @property
    def is_overtime_card(self) -> bool:
        return self.card_type == CardType.OVERTIME

    @property
    def is_sunday(self) -> bool:
        return self.date is not None and self.date.weekday() == 6

    def periods(self) -> list[tuple[str, str]]:
        return [(getattr(self, start), getattr(self, end)) for start, end in PAIR_FIELDS]


@dataclass(frozen=True)
class PayrollConfig:
    """Per-employee rate basis and schedule used by every engine entry point."""

    base_salary: float
    monthly_hours: float = 220
    daily_journey_hours: float = 8
    weekly_limit_hours: float = 0
    night_cutoff: str = "22:00"
    percent_50: float = 50
    percent_100: float = 100
    percent_night: float = 25
    saturday_compensation: bool = False
    compensation_weekdays: tuple[int, ...] = (0, 1, 2, 3)
    cycle_start_day: int = 1
    dependents: int = 0
    advance_percent: float = 40
    advance_fixed_ir: float = 0
    work_start: str = "12:00"
    lunch_start: str = "17:00"
    lunch_end: str = "18:00"
    work_end: str = "21:00"
    saturday_work_start: str = "12:00"
    saturday_work_end: str = "16:00"

    @property
    def effective_monthly_hours(self) -> float:
        return self.monthly_hours if self.monthly_hours > 0 else 1

    @property
    def effective_cycle_start_day(self) -> int:
        return min(31, max(1, int(self.cycle_start_day or 1)))

    @property
    def weekly_limit_minutes(self) -> int:
        return max(0, int(round((self.weekly_limit_hours or 0) * 60)))


@dataclass
class BucketTotals:
    tier_50: int = 0
    tier_75: int = 0
    tier_100: int = 0
    tier_125: int = 0
    banked: int = 0
    absence: int = 0

    def add_tier(self, tier: RateTier, minutes: int = 1) -> None:
        attr = _TIER_ATTRS[tier]
        setattr(self, attr, getattr(self, attr) + minutes)

    def tier_minutes(self, tier: RateTier) -> int:
        return getattr(self, _TIER_ATTRS[tier])

    def merge(self, other: BucketTotals) -> None:
        self.tier_50 += other.tier_50
        self.tier_75 += other.tier_75
        self.tier_100 += other.tier_100
        self.tier_125 += other.tier_125
        self.banked += other.banked
        self.absence += other.absence

    @property
    def overtime_minutes(self) -> int:
        return self.tier_50 + self.tier_75 + self.tier_100 + self.tier_125


_TIER_ATTRS = {
    RateTier.TIER_50: "tier_50",
    RateTier.TIER_75: "tier_75",
    RateTier.TIER_100: "tier_100",
    RateTier.TIER_125: "tier_125",
}


@dataclass(frozen=True)
class RatePack:
    hourly_rate: float
    rate_50: float
    rate_75: float
    rate_100: float
    rate_125: float

    def for_tier(self, tier: RateTier) -> float:
        return {
            RateTier.TIER_50: self.rate_50,
            RateTier.TIER_75: self.rate_75,
            RateTier.TIER_100: self.rate_100,
            RateTier.TIER_125: self.rate_125,
        }[tier]

    def value_of(self, totals: BucketTotals) -> float:
        return sum(totals.tier_minutes(tier) / 60 * self.for_tier(tier) for tier in RateTier)


@dataclass(frozen=True)
class DayResult:
    date: date
    line: int
    card_type: CardType
    week_key: str
    worked_minutes: int
    expected_minutes: int
    overtime_minutes: int
    totals: BucketTotals
    is_manual_annotation: bool = False


@dataclass(frozen=True)
class WeeklySummary:
    key: str
    start: date
    end: date
    totals: BucketTotals
    value: float


@dataclass(frozen=True)
class Classification:
    weekly_summaries: list[WeeklySummary]
    totals: BucketTotals
    rates: RatePack
    total_value: float
    days: list[DayResult] = field(default_factory=list)


@dataclass(frozen=True)
class PayslipAggregates:
    tier_50: int = 0
    tier_75: int = 0
    tier_100: int = 0
    tier_125: int = 0
    lateness: int = 0

    def tier_minutes(self, tier: RateTier) -> int:
        return max(0, int(getattr(self, _TIER_ATTRS[tier])))


@dataclass(frozen=True)
class Projection:
    normal_card: list[CardDay]
    overtime_card: list[CardDay]
    applied: BucketTotals
    warnings: list[str]


@dataclass(frozen=True)
class AdvancePayment:
    gross: float = 0
    ir_withheld: float = 0


@dataclass(frozen=True)
class PayrollSettlement:
    month: int
    year: int
    business_days: int
    rest_days: int
    holidays: list[date]
    hourly_rate: float
    rates: RatePack
    value_50: float
    value_75: float
    value_100: float
    value_125: float
    overtime_value: float
    dsr_value: float
    gross: float
    inss_base: float
    inss: float
    ir_base: float
    ir_traditional: float
    ir_reducer: float
    ir_total: float
    advance_gross: float
    advance_ir: float
    advance_net: float
    ir_closing: float
    ir_month_total: float
    lateness_minutes: int
    lateness_value: float
    lateness_dsr: float
    total_deductions: float
    rounding: float
    net: float
    total_received: float


@dataclass(frozen=True)
class LedgerEntry:
    date: date
    line: int
    kind: LedgerKind
    minutes: int
    balance_minutes: int
    description: str


@dataclass(frozen=True)
class BankLedger:
    entries: list[LedgerEntry]
    credit_minutes: int
    debit_minutes: int

    @property
    def balance_minutes(self) -> int:
        return self.credit_minutes - self.debit_minutes


@dataclass(frozen=True)
class MonthClosing:
    month: int
    year: int
    classification: Classification
    ledger: BankLedger
    settlement: PayrollSettlement
