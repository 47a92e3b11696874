from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_iso_datetime(value: str) -> datetime:
    """ISO-8601 com sufixo 'Z' aceito; resultado pode ser naive."""
    return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))


def parse_date_or_datetime(value: str) -> date | datetime:
    """
    'YYYY-MM-DD' vira date; qualquer outra coisa ISO-8601 vira datetime.
    ValueError se não for ISO-8601.
    """
    raw = value.strip()
    if len(raw) == 10:
        return date.fromisoformat(raw)
    return parse_iso_datetime(raw)
