from __future__ import annotations

import re
from typing import Any

MINUTES_PER_DAY = 24 * 60

_CLOCK_RE = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")


def normalize_clock(value: Any) -> str:
    raw = str(value if value is not None else "").strip()
    return raw if _CLOCK_RE.match(raw) else ""


def minutes_of_day(clock: str | None) -> int:
    normalized = normalize_clock(clock)
    if not normalized:
        return 0
    hours_raw, _, minutes_raw = normalized.partition(":")
    return int(hours_raw) * 60 + int(minutes_raw)


def duration(start: str | None, end: str | None) -> int:
    start_clock = normalize_clock(start)
    end_clock = normalize_clock(end)
    if not start_clock or not end_clock:
        return 0
    value = minutes_of_day(end_clock) - minutes_of_day(start_clock)
    if value < 0:
        value += MINUTES_PER_DAY
    return max(0, value)


def format_clock(minutes: float) -> str:
    value = int(round(minutes)) % MINUTES_PER_DAY
    return f"{value // 60:02d}:{value % 60:02d}"


def format_duration(minutes: float) -> str:
    value = max(0, int(round(minutes)))
    return f"{value // 60:02d}:{value % 60:02d}"


def format_hours_clock(minutes: float) -> str:
    value = max(0, int(round(minutes)))
    return f"{value // 60}h{value % 60:02d}"


def normalize_typed_clock(raw: str | None) -> str:
    """Turn loosely typed manual input ("830", "8", "08:3") into a strict HH:MM clock."""
    value = (raw or "").strip()
    digits = re.sub(r"\D", "", value)
    if not digits:
        return ""

    if ":" in value:
        hours_raw, _, minutes_raw = re.sub(r"[^\d:]", "", value).partition(":")
    elif len(digits) <= 2:
        hours_raw, minutes_raw = digits, "00"
    elif len(digits) == 3:
        hours_raw, minutes_raw = digits[:1], digits[1:3]
    else:
        hours_raw, minutes_raw = digits[:2], digits[2:4]

    hours = min(23, max(0, int(hours_raw or "0")))
    minutes = min(59, max(0, int(minutes_raw.replace(":", "") or "0")))
    return f"{hours:02d}:{minutes:02d}"
