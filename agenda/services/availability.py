from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agenda.core.errors import InvalidInputError, NotFoundError, UpstreamError
from agenda.core.logging import bind_business, get_logger
from agenda.core.settings import settings
from agenda.models.business import Business
from agenda.models.professional import Professional
from agenda.services.busy_set import collect_busy_intervals
from agenda.services.schedule_resolver import resolve_working_window
from agenda.services.slot_generator import generate_slots
from agenda.utils.time import Clock, parse_date_or_datetime, utc_now
from agenda.utils.tz import local_day_bounds_utc, resolve_timezone, sunday_based_weekday

log = get_logger(component="availability")

# um dia de trabalho inteiro; acima disso nenhum horário caberia
MAX_DURATION_MINUTES = 720


@dataclass
class AvailabilityResult:
    professional_id: int
    local_date: date
    timezone: ZoneInfo
    slots: list[datetime] = field(default_factory=list)


def local_date_for(requested: str | date | datetime, tz: ZoneInfo) -> date:
    """
    Data local alvo: 'YYYY-MM-DD' é a própria data; datetime aware é convertido
    para o fuso do negócio; datetime naive é lido como horário de parede local.
    """
    if isinstance(requested, str):
        try:
            requested = parse_date_or_datetime(requested)
        except ValueError:
            raise InvalidInputError(
                "Data inválida (use ISO-8601, ex.: 2025-09-10 ou 2025-09-10T12:00:00Z)"
            ) from None
    if isinstance(requested, datetime):
        if requested.tzinfo is None:
            return requested.date()
        return requested.astimezone(tz).date()
    return requested


class AvailabilityService:
    """Pipeline: jornada do dia → ocupações → horários livres."""

    def __init__(
        self,
        db: Session,
        *,
        step_minutes: int | None = None,
        allow_overrun: bool | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.db = db
        self.step_minutes = step_minutes or settings.SLOT_STEP_MINUTES
        self.allow_overrun = (
            settings.SLOTS_ALLOW_OVERRUN_PAST_CLOSING
            if allow_overrun is None
            else allow_overrun
        )
        self.clock = clock

    def _load(self, professional_id: int) -> tuple[Professional, Business]:
        try:
            prof = self.db.get(Professional, professional_id)
        except SQLAlchemyError as exc:
            log.error("availability.storage_error", stage="professional", error=str(exc))
            raise UpstreamError("Erro ao buscar profissional.") from exc
        if prof is None:
            raise NotFoundError("Profissional não encontrado.")
        business = prof.business
        if business is None:
            raise InvalidInputError("Perfil do negócio não encontrado para o profissional.")
        return prof, business

    def compute(
        self,
        professional_id: int | None,
        requested: str | date | datetime | None,
        total_duration: int | None,
    ) -> AvailabilityResult:
        if not professional_id or requested in (None, "") or total_duration is None:
            raise InvalidInputError(
                "ID do profissional, data e duração do serviço são obrigatórios."
            )
        if total_duration <= 0:
            raise InvalidInputError("A duração do serviço deve ser positiva.")
        if total_duration > MAX_DURATION_MINUTES:
            raise InvalidInputError(
                f"A duração do serviço deve ser de no máximo {MAX_DURATION_MINUTES} minutos."
            )

        prof, business = self._load(professional_id)
        bind_business(business.id)
        try:
            tz = resolve_timezone(business.timezone, settings.DEFAULT_TIMEZONE)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from None

        local_date = local_date_for(requested, tz)
        result = AvailabilityResult(prof.id, local_date, tz)
        bound = log.bind(
            professional_id=prof.id,
            date=local_date.isoformat(),
            day_of_week=sunday_based_weekday(local_date),
            timezone=tz.key,
            duration=total_duration,
        )

        try:
            window = resolve_working_window(self.db, prof.id, local_date, tz)
            if window is None:
                bound.info("availability.not_working")
                return result
            day_start, day_end = local_day_bounds_utc(local_date, tz)
            busy = collect_busy_intervals(
                self.db, business.id, prof.id, day_start, day_end
            )
        except SQLAlchemyError as exc:
            # falha fechada: sem leitura confiável não há horário a oferecer
            bound.error("availability.storage_error", error=str(exc))
            raise UpstreamError("Erro ao consultar a agenda do profissional.") from exc
        except OverflowError:
            # data no limite do calendário: o dia local não cabe em UTC
            bound.info("availability.date_out_of_range")
            raise InvalidInputError("Data fora do intervalo suportado.") from None

        try:
            result.slots = generate_slots(
                window,
                busy,
                total_duration,
                self.clock(),
                step_minutes=self.step_minutes,
                allow_overrun=self.allow_overrun,
            )
        except OverflowError:
            bound.info("availability.date_out_of_range")
            raise InvalidInputError("Data fora do intervalo suportado.") from None
        bound.info(
            "availability.computed",
            slots=len(result.slots),
            busy=len(busy),
            window_start=window.start.isoformat(),
            window_end=window.end.isoformat(),
        )
        return result

    def available_times(
        self,
        professional_id: int | None,
        requested: str | date | datetime | None,
        total_duration: int | None,
    ) -> list[datetime]:
        return self.compute(professional_id, requested, total_duration).slots
