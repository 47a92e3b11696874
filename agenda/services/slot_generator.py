from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import datetime, timedelta

from agenda.services.schedule_resolver import WorkingWindow
from agenda.utils.tz import Interval, overlaps

DEFAULT_STEP_MINUTES = 15


def iter_candidates(
    window: WorkingWindow, step_minutes: int = DEFAULT_STEP_MINUTES
) -> Iterator[datetime]:
    """Inícios candidatos a cada passo, enquanto início < fim da jornada."""
    step = timedelta(minutes=step_minutes)
    cur = window.start
    while cur < window.end:
        yield cur
        cur += step


def generate_slots(
    window: WorkingWindow,
    busy: Iterable[Interval],
    duration_minutes: int,
    now: datetime,
    *,
    step_minutes: int = DEFAULT_STEP_MINUTES,
    allow_overrun: bool = False,
) -> list[datetime]:
    """
    Horários livres (UTC, crescentes) para um serviço de ``duration_minutes``.

    Rejeita candidatos no passado e os que colidem com algum intervalo ocupado.
    Com ``allow_overrun=False`` o serviço também precisa terminar até o fim da
    jornada; com True só o início é limitado.
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes deve ser positivo")
    if step_minutes <= 0:
        raise ValueError("step_minutes deve ser positivo")

    busy = list(busy)
    duration = timedelta(minutes=duration_minutes)
    slots: list[datetime] = []
    for start in iter_candidates(window, step_minutes):
        end = start + duration
        if start < now:
            continue
        if not allow_overrun and end > window.end:
            continue
        if any(overlaps(start, end, b.start, b.end) for b in busy):
            continue
        slots.append(start)
    return slots
