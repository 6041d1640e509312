from fastapi import APIRouter, Query, Request, Response

from ponto.errors import ApiError, EngineError
from ponto.models import MonthClosing
from ponto.routers.cards import build_card_days
from ponto.schemas import (
    CalendarResponse,
    ClosingRequest,
    HolidayRead,
    MonthClosingRead,
    PayrollSettlementRead,
    ProjectionRead,
    ProjectionRequest,
    SettlementRequest,
)
from ponto.services.closing import close_month
from ponto.services.exports import build_closing_xlsx_bytes
from ponto.services.holidays import count_business_and_rest_days, holidays_for_year
from ponto.services.journey import validate_competence
from ponto.services.payroll import settle
from ponto.services.projection import project

router = APIRouter(tags=["payroll"])
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _engine_error(exc: EngineError) -> ApiError:
    return ApiError(status_code=422, code=exc.code, message=exc.message)


def _close(payload: ClosingRequest) -> MonthClosing:
    config = payload.config.to_config() if payload.config is not None else None
    try:
        return close_month(
            build_card_days(payload),
            config,
            month=payload.month,
            year=payload.year,
            advance=payload.advance.to_advance() if payload.advance is not None else None,
        )
    except EngineError as exc:
        raise _engine_error(exc) from exc


@router.post("/api/holerith/projection", response_model=ProjectionRead)
def holerith_projection(payload: ProjectionRequest, request: Request) -> ProjectionRead:
    config = payload.config.to_config() if payload.config is not None else None
    try:
        result = project(payload.aggregates.to_aggregates(), payload.reference, config)
    except EngineError as exc:
        raise _engine_error(exc) from exc
    request.state.flags = {"warnings": len(result.warnings)}
    return ProjectionRead.model_validate(result)


@router.post("/api/payroll/settlement", response_model=PayrollSettlementRead)
def payroll_settlement(payload: SettlementRequest) -> PayrollSettlementRead:
    config = payload.config.to_config() if payload.config is not None else None
    try:
        result = settle(
            payload.totals.to_totals(),
            payload.lateness_minutes,
            payload.month,
            payload.year,
            config,
            advance=payload.advance.to_advance() if payload.advance is not None else None,
        )
    except EngineError as exc:
        raise _engine_error(exc) from exc
    return PayrollSettlementRead.model_validate(result)


@router.post("/api/payroll/closing", response_model=MonthClosingRead)
def payroll_closing(payload: ClosingRequest) -> MonthClosingRead:
    return MonthClosingRead.model_validate(_close(payload))


@router.post("/api/exports/closing.xlsx")
def export_closing_xlsx(payload: ClosingRequest) -> Response:
    content = build_closing_xlsx_bytes(_close(payload))
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="fechamento-{payload.year}-{payload.month:02d}.xlsx"'
        },
    )


@router.get("/api/calendar/{year}/{month}", response_model=CalendarResponse)
def competence_calendar(
    year: int,
    month: int,
    cycle_start_day: int = Query(default=1, ge=1, le=31),
) -> CalendarResponse:
    try:
        validate_competence(month, year)
    except EngineError as exc:
        raise _engine_error(exc) from exc
    counts = count_business_and_rest_days(month, year, cycle_start_day)
    names = {**holidays_for_year(counts.start.year), **holidays_for_year(counts.end.year)}
    return CalendarResponse(
        month=month,
        year=year,
        cycle_start_day=cycle_start_day,
        start=counts.start,
        end=counts.end,
        business_days=counts.business_days,
        sundays_and_holidays=counts.sundays_and_holidays,
        holidays=[HolidayRead(date=day, name=names[day]) for day in counts.holidays],
    )
