import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ponto.models import (
    AdvancePayment,
    BucketTotals,
    CardDay,
    CardType,
    LedgerKind,
    PayrollConfig,
    PayslipAggregates,
)
from ponto.services.clock import normalize_typed_clock

CLOCK_PATTERN = r"^\d{1,2}:\d{2}$"


class PayrollConfigIn(BaseModel):
    base_salary: float = Field(ge=0)
    monthly_hours: float = 220
    daily_journey_hours: float = Field(default=8, ge=0, le=24)
    weekly_limit_hours: float = Field(default=0, ge=0)
    night_cutoff: str = Field(default="22:00", pattern=CLOCK_PATTERN)
    percent_50: float = Field(default=50, ge=0)
    percent_100: float = Field(default=100, ge=0)
    percent_night: float = Field(default=25, ge=0)
    saturday_compensation: bool = False
    compensation_weekdays: list[int] = Field(default_factory=lambda: [0, 1, 2, 3])
    cycle_start_day: int = Field(default=1, ge=1, le=31)
    dependents: int = Field(default=0, ge=0)
    advance_percent: float = Field(default=40, ge=0, le=100)
    advance_fixed_ir: float = Field(default=0, ge=0)
    work_start: str = Field(default="12:00", pattern=CLOCK_PATTERN)
    lunch_start: str = Field(default="17:00", pattern=CLOCK_PATTERN)
    lunch_end: str = Field(default="18:00", pattern=CLOCK_PATTERN)
    work_end: str = Field(default="21:00", pattern=CLOCK_PATTERN)
    saturday_work_start: str = Field(default="12:00", pattern=CLOCK_PATTERN)
    saturday_work_end: str = Field(default="16:00", pattern=CLOCK_PATTERN)

    @field_validator("compensation_weekdays")
    @classmethod
    def _validate_weekdays(cls, value: list[int]) -> list[int]:
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("Weekdays must be between 0 (Monday) and 6 (Sunday).")
        return sorted(set(value))

    def to_config(self) -> PayrollConfig:
        payload = self.model_dump()
        payload["compensation_weekdays"] = tuple(self.compensation_weekdays)
        return PayrollConfig(**payload)


class CardDayIn(BaseModel):
    line: int = Field(ge=1, le=31)
    date: dt.date | None = None
    card_type: CardType = CardType.NORMAL
    entry1: str = ""
    exit1: str = ""
    entry2: str = ""
    exit2: str = ""
    entry_extra: str = ""
    exit_extra: str = ""
    is_manual_annotation: bool = False

    def to_card_day(self, *, resolved_date: dt.date | None = None, typed: bool = False) -> CardDay:
        punches = self.model_dump(include={"entry1", "exit1", "entry2", "exit2", "entry_extra", "exit_extra"})
        if typed:
            punches = {key: normalize_typed_clock(value) for key, value in punches.items()}
        return CardDay(
            line=self.line,
            date=self.date or resolved_date,
            card_type=self.card_type,
            is_manual_annotation=self.is_manual_annotation,
            **punches,
        )


class BucketTotalsIn(BaseModel):
    tier_50: int = Field(default=0, ge=0)
    tier_75: int = Field(default=0, ge=0)
    tier_100: int = Field(default=0, ge=0)
    tier_125: int = Field(default=0, ge=0)

    def to_totals(self) -> BucketTotals:
        return BucketTotals(**self.model_dump())


class PayslipAggregatesIn(BucketTotalsIn):
    lateness: int = Field(default=0, ge=0)

    def to_aggregates(self) -> PayslipAggregates:
        return PayslipAggregates(**self.model_dump())


class AdvancePaymentIn(BaseModel):
    gross: float = Field(default=0, ge=0)
    ir_withheld: float = Field(default=0, ge=0)

    def to_advance(self) -> AdvancePayment:
        return AdvancePayment(gross=self.gross, ir_withheld=self.ir_withheld)


class ClassifyRequest(BaseModel):
    entries: list[CardDayIn] = Field(default_factory=list, max_length=62)
    config: PayrollConfigIn | None = None
    # Used to resolve dates of entries that only carry their card line.
    month: int | None = Field(default=None, ge=1, le=12)
    year: int | None = Field(default=None, ge=1900, le=9999)
    manual_entry: bool = False


class ProjectionRequest(BaseModel):
    reference: str
    aggregates: PayslipAggregatesIn
    config: PayrollConfigIn | None = None


class SettlementRequest(BaseModel):
    totals: BucketTotalsIn
    lateness_minutes: int = Field(default=0, ge=0)
    month: int
    year: int
    config: PayrollConfigIn | None = None
    advance: AdvancePaymentIn | None = None


class ClosingRequest(ClassifyRequest):
    month: int
    year: int
    advance: AdvancePaymentIn | None = None


class BucketTotalsRead(BaseModel):
    tier_50: int
    tier_75: int
    tier_100: int
    tier_125: int
    banked: int
    absence: int
    overtime_minutes: int

    model_config = ConfigDict(from_attributes=True)


class RatePackRead(BaseModel):
    hourly_rate: float
    rate_50: float
    rate_75: float
    rate_100: float
    rate_125: float

    model_config = ConfigDict(from_attributes=True)


class WeeklySummaryRead(BaseModel):
    key: str
    start: dt.date
    end: dt.date
    totals: BucketTotalsRead
    value: float

    model_config = ConfigDict(from_attributes=True)


class DayResultRead(BaseModel):
    date: dt.date
    line: int
    card_type: CardType
    week_key: str
    worked_minutes: int
    expected_minutes: int
    overtime_minutes: int
    totals: BucketTotalsRead
    is_manual_annotation: bool

    model_config = ConfigDict(from_attributes=True)


class ClassificationRead(BaseModel):
    weekly_summaries: list[WeeklySummaryRead]
    totals: BucketTotalsRead
    rates: RatePackRead
    total_value: float
    days: list[DayResultRead]

    model_config = ConfigDict(from_attributes=True)


class CardDayRead(BaseModel):
    line: int
    date: dt.date | None
    card_type: CardType
    entry1: str
    exit1: str
    entry2: str
    exit2: str
    entry_extra: str
    exit_extra: str
    is_manual_annotation: bool

    model_config = ConfigDict(from_attributes=True)


class CardTemplateResponse(BaseModel):
    month: int
    year: int
    cycle_start_day: int
    normal_card: list[CardDayRead]
    overtime_card: list[CardDayRead]


class ProjectionRead(BaseModel):
    normal_card: list[CardDayRead]
    overtime_card: list[CardDayRead]
    applied: BucketTotalsRead
    warnings: list[str]

    model_config = ConfigDict(from_attributes=True)


class PayrollSettlementRead(BaseModel):
    month: int
    year: int
    business_days: int
    rest_days: int
    holidays: list[dt.date]
    hourly_rate: float
    rates: RatePackRead
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

    model_config = ConfigDict(from_attributes=True)


class LedgerEntryRead(BaseModel):
    date: dt.date
    line: int
    kind: LedgerKind
    minutes: int
    balance_minutes: int
    description: str

    model_config = ConfigDict(from_attributes=True)


class BankLedgerRead(BaseModel):
    entries: list[LedgerEntryRead]
    credit_minutes: int
    debit_minutes: int
    balance_minutes: int

    model_config = ConfigDict(from_attributes=True)


class MonthClosingRead(BaseModel):
    month: int
    year: int
    classification: ClassificationRead
    ledger: BankLedgerRead
    settlement: PayrollSettlementRead

    model_config = ConfigDict(from_attributes=True)


class HolidayRead(BaseModel):
    date: dt.date
    name: str


class CalendarResponse(BaseModel):
    month: int
    year: int
    cycle_start_day: int
    start: dt.date
    end: dt.date
    business_days: int
    sundays_and_holidays: int
    holidays: list[HolidayRead]
