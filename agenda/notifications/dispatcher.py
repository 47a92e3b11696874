from __future__ import annotations

from collections.abc import Callable

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session, joinedload

from agenda.core.logging import get_logger
from agenda.core.settings import Settings
from agenda.models.appointment import Appointment
from agenda.notifications.events import AppointmentEvent, EventKind
from agenda.notifications.senders import TelegramSender, WhatsAppSender
from agenda.notifications.templates import BUSINESS, CLIENT, render_message
from agenda.utils.tz import resolve_timezone, to_local

log = get_logger(component="notify")


def _normalize_base(url: str | None) -> str:
    if not url:
        return "http://localhost:8000"
    url = url.strip()
    if not url:
        return "http://localhost:8000"
    if not (url.startswith("http://") or url.startswith("https://")):
        # host[:port] sem esquema
        url = "http://" + url
    return url.rstrip("/")


class NotificationDispatcher:
    """
    Emite eventos de agendamento para fora do núcleo.

    ``emit`` só agenda a entrega em BackgroundTasks; ``dispatch`` roda depois da
    resposta, com sessão própria, e nunca propaga falha de entrega.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        whatsapp: WhatsAppSender,
        telegram: TelegramSender,
        public_base_url: str | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.whatsapp = whatsapp
        self.telegram = telegram
        self.public_base_url = _normalize_base(public_base_url)

    @classmethod
    def from_settings(
        cls, session_factory: Callable[[], Session], settings: Settings
    ) -> NotificationDispatcher:
        return cls(
            session_factory,
            whatsapp=WhatsAppSender(
                settings.WHATSAPP_API_TOKEN,
                settings.WHATSAPP_PHONE_NUMBER_ID,
                base_url=settings.WHATSAPP_API_BASE,
                timeout=settings.NOTIFY_TIMEOUT_SECONDS,
            ),
            telegram=TelegramSender(
                settings.TELEGRAM_BOT_TOKEN,
                base_url=settings.TELEGRAM_API_BASE,
                timeout=settings.NOTIFY_TIMEOUT_SECONDS,
            ),
            public_base_url=settings.APP_PUBLIC_BASE_URL,
        )

    def emit(self, background: BackgroundTasks, event: AppointmentEvent) -> None:
        background.add_task(self.dispatch, event)

    def cancel_url(self, ap: Appointment) -> str:
        return f"{self.public_base_url}/cancel/{ap.id}/{ap.cancellation_token}"

    def build_context(self, ap: Appointment) -> dict:
        tz = resolve_timezone(ap.business.timezone)
        starts_local = to_local(ap.start_time, tz)
        return {
            "client_name": ap.client.full_name or "Cliente",
            "service_name": ap.service_name or "Serviço",
            "professional_name": ap.professional.name or "Profissional",
            "business_name": ap.business.name,
            "date": starts_local.strftime("%d/%m/%Y"),
            "time": starts_local.strftime("%H:%M"),
            "cancel_url": self.cancel_url(ap),
        }

    def deliver(self, ap: Appointment, kind: EventKind) -> int:
        """Envia as mensagens do evento para o cliente e o negócio. Retorna quantas saíram."""
        if not ap.business.notifications_enabled:
            log.info("notify.disabled_for_business", business_id=ap.business_id)
            return 0

        ctx = self.build_context(ap)
        sent = 0
        client_text = render_message(kind, CLIENT, ctx)
        if client_text:
            sent += self.whatsapp.send_text(ap.client.phone, client_text)
            sent += self.telegram.send_text(ap.client.telegram_chat_id, client_text)
        business_text = render_message(kind, BUSINESS, ctx)
        if business_text and ap.business.whatsapp_phone:
            sent += self.whatsapp.send_text(ap.business.whatsapp_phone, business_text)
        return sent

    def dispatch(self, event: AppointmentEvent) -> int:
        bound = log.bind(event=event.kind.value, appointment_id=event.appointment_id)
        try:
            with self.session_factory() as db:
                ap = db.get(
                    Appointment,
                    event.appointment_id,
                    options=[
                        joinedload(Appointment.client),
                        joinedload(Appointment.professional),
                        joinedload(Appointment.business),
                    ],
                )
                if ap is None:
                    bound.warning("notify.appointment_not_found")
                    return 0
                sent = self.deliver(ap, event.kind)
        except Exception:
            bound.exception("notify.dispatch_failed")
            return 0
        bound.info("notify.dispatched", sent=sent)
        return sent
