from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

BR_TZ = ZoneInfo("America/Sao_Paulo")
UTC = UTC


@dataclass(frozen=True)
class Interval:
    """Intervalo semiaberto [start, end) em instantes UTC aware."""

    start: datetime
    end: datetime

    def overlaps(self, other: Interval) -> bool:
        return overlaps(self.start, self.end, other.start, other.end)


def overlaps(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    # intervalo [start, end): fim exclusivo, encostar não é colidir
    return a_start < b_end and b_start < a_end


def resolve_timezone(name: str | None, default: str = "America/Sao_Paulo") -> ZoneInfo:
    """
    Resolve um nome IANA. Nome vazio cai no default; nome inexistente é ValueError.
    """
    try:
        return ZoneInfo(name or default)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Timezone inválida: {name!r}") from None


def sunday_based_weekday(d: date) -> int:
    """0=domingo ... 6=sábado (``date.weekday()`` começa na segunda)."""
    return d.isoweekday() % 7


def ensure_aware_utc(dt: datetime) -> datetime:
    """
    Garante que dt é timezone-aware em UTC.
    - Se já vier aware: converte para UTC.
    - Se vier naive: ERRO (evita gravar errado).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Datetime naive recebido. Sempre use datetimes timezone-aware."
        )
    return dt.astimezone(UTC)


def to_utc(dt: datetime, tz: ZoneInfo | None = None) -> datetime:
    """
    Converte um datetime (naive ou aware) para UTC.
    - Naive: assume tz fornecida (padrão BR).
    - Aware: só converte para UTC.
    """
    tz = tz or BR_TZ
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt.astimezone(UTC)


def to_local(dt_utc: datetime, tz: ZoneInfo | None = None) -> datetime:
    """
    Converte um datetime UTC (aware) para TZ local (aware).
    """
    tz = tz or BR_TZ
    if dt_utc.tzinfo is None:
        raise ValueError("Esperava datetime UTC timezone-aware.")
    return dt_utc.astimezone(tz)


def combine_local_to_utc(d: date, t: time, tz: ZoneInfo | None = None) -> datetime:
    """
    Combina uma data+hora interpretadas na TZ local e retorna em UTC (aware).
    As regras do fuso (inclusive horário de verão) valem para aquela data.
    """
    tz = tz or BR_TZ
    if t.tzinfo is not None:
        # se alguém passou um time aware, normalize para naive e use TZ alvo
        t = time(t.hour, t.minute, t.second, t.microsecond)
    local_dt = datetime.combine(d, t).replace(tzinfo=tz)
    return local_dt.astimezone(UTC)


def split_utc_to_local(
    dtu: datetime, tz: ZoneInfo | None = None
) -> tuple[date, int, time]:
    """
    Quebra um instante UTC em (data_local, dia_da_semana, hora_local) na TZ do negócio.
    Perto da meia-noite a data local pode diferir da data UTC.
    """
    tz = tz or BR_TZ
    if dtu.tzinfo is None:
        raise ValueError("Esperava datetime UTC timezone-aware.")
    loc = dtu.astimezone(tz)
    return loc.date(), sunday_based_weekday(loc.date()), loc.timetz()


def local_day_bounds_utc(d: date, tz: ZoneInfo | None = None) -> tuple[datetime, datetime]:
    """Início (00:00:00) e fim (23:59:59) do dia local d, em UTC."""
    return (
        combine_local_to_utc(d, time(0, 0, 0), tz),
        combine_local_to_utc(d, time(23, 59, 59), tz),
    )


def iso_utc(dt: datetime) -> str:
    """
    Serializa em ISO 8601 sempre em UTC com sufixo 'Z'.
    """
    return ensure_aware_utc(dt).isoformat().replace("+00:00", "Z")
