from __future__ import annotations

import re

import httpx

from agenda.core.logging import get_logger

log = get_logger(component="notify")

_NON_DIGITS = re.compile(r"\D")


def format_br_phone(phone: str | None) -> str | None:
    """
    Normaliza para E.164 brasileiro: '(11) 98888-7777' -> '+5511988887777'.
    Menos de 10 dígitos = inválido (None).
    """
    if not phone:
        return None
    digits = _NON_DIGITS.sub("", phone)
    if len(digits) < 10:
        return None
    if digits.startswith("55"):
        return f"+{digits}"
    return f"+55{digits}"


class WhatsAppSender:
    """Mensagens de texto pela Cloud API (Graph) do WhatsApp."""

    def __init__(
        self,
        token: str | None,
        phone_number_id: str | None,
        *,
        base_url: str = "https://graph.facebook.com/v19.0",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.token = token
        self.phone_number_id = phone_number_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.phone_number_id)

    def send_text(self, phone: str | None, text: str) -> bool:
        if not self.enabled:
            log.info("notify.whatsapp.disabled")
            return False
        to = format_br_phone(phone)
        if to is None:
            log.info("notify.whatsapp.invalid_phone")
            return False

        url = f"{self.base_url}/{self.phone_number_id}/messages"
        body = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": text},
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(
                    url, json=body, headers={"Authorization": f"Bearer {self.token}"}
                )
        except httpx.HTTPError as exc:
            # canal fora do ar não derruba os demais envios
            log.warning("notify.whatsapp.failed", error=repr(exc))
            return False
        if resp.is_error:
            log.warning(
                "notify.whatsapp.failed", status_code=resp.status_code, body=resp.text[:500]
            )
            return False
        log.info("notify.whatsapp.sent", to=to)
        return True


class TelegramSender:
    """Bot API do Telegram; só envia para clientes com chat vinculado."""

    def __init__(
        self,
        token: str | None,
        *,
        base_url: str = "https://api.telegram.org",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.token)

    def send_text(self, chat_id: str | None, text: str) -> bool:
        if not self.enabled or not chat_id:
            return False
        url = f"{self.base_url}/bot{self.token}/sendMessage"
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(url, json={"chat_id": chat_id, "text": text})
        except httpx.HTTPError as exc:
            log.warning("notify.telegram.failed", error=repr(exc))
            return False
        if resp.is_error:
            log.warning(
                "notify.telegram.failed", status_code=resp.status_code, body=resp.text[:500]
            )
            return False
        log.info("notify.telegram.sent", chat_id=chat_id)
        return True
