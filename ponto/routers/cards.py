from fastapi import APIRouter, Query, Request

from ponto.errors import ApiError, EngineError
from ponto.models import CardDay, CardType
from ponto.schemas import (
    CardDayRead,
    CardTemplateResponse,
    ClassificationRead,
    ClassifyRequest,
)
from ponto.services.cards import build_card_template
from ponto.services.journey import resolve_work_date, validate_competence
from ponto.services.weekly import classify

router = APIRouter(tags=["cards"])


def build_card_days(payload: ClassifyRequest) -> list[CardDay]:
    cycle_start_day = payload.config.cycle_start_day if payload.config is not None else 1
    days: list[CardDay] = []
    for entry in payload.entries:
        resolved = None
        if entry.date is None and payload.month is not None and payload.year is not None:
            resolved = resolve_work_date(entry.line, payload.month, payload.year, cycle_start_day)
        days.append(entry.to_card_day(resolved_date=resolved, typed=payload.manual_entry))
    return days


@router.post("/api/cards/classify", response_model=ClassificationRead)
def classify_cards(payload: ClassifyRequest, request: Request) -> ClassificationRead:
    config = payload.config.to_config() if payload.config is not None else None
    try:
        result = classify(build_card_days(payload), config)
    except EngineError as exc:
        raise ApiError(status_code=422, code=exc.code, message=exc.message) from exc
    request.state.flags = {"entries": len(payload.entries), "weeks": len(result.weekly_summaries)}
    return ClassificationRead.model_validate(result)


@router.get("/api/cards/template/{year}/{month}", response_model=CardTemplateResponse)
def card_template(
    year: int,
    month: int,
    cycle_start_day: int = Query(default=1, ge=1, le=31),
) -> CardTemplateResponse:
    try:
        validate_competence(month, year)
    except EngineError as exc:
        raise ApiError(status_code=422, code=exc.code, message=exc.message) from exc
    return CardTemplateResponse(
        month=month,
        year=year,
        cycle_start_day=cycle_start_day,
        normal_card=[
            CardDayRead.model_validate(day)
            for day in build_card_template(CardType.NORMAL, month, year, cycle_start_day)
        ],
        overtime_card=[
            CardDayRead.model_validate(day)
            for day in build_card_template(CardType.OVERTIME, month, year, cycle_start_day)
        ],
    )
