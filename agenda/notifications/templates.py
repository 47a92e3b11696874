from __future__ import annotations

from jinja2 import Environment, StrictUndefined

from agenda.notifications.events import EventKind

_env = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=False)

CLIENT = "client"
BUSINESS = "business"

DEFAULT_TEMPLATES: dict[tuple[EventKind, str], str] = {
    (EventKind.CREATED, CLIENT): (
        "Olá {{ client_name }}! Seu horário de {{ service_name }} com "
        "{{ professional_name }} no {{ business_name }} está confirmado para "
        "{{ date }} às {{ time }}. Para cancelar: {{ cancel_url }}"
    ),
    (EventKind.CREATED, BUSINESS): (
        "Novo agendamento: {{ client_name }} - {{ service_name }} com "
        "{{ professional_name }} em {{ date }} às {{ time }}."
    ),
    (EventKind.CANCELLED, CLIENT): (
        "Olá {{ client_name }}, seu horário de {{ service_name }} em {{ date }} "
        "às {{ time }} foi cancelado."
    ),
    (EventKind.CANCELLED, BUSINESS): (
        "Agendamento cancelado: {{ client_name }} - {{ service_name }} em "
        "{{ date }} às {{ time }}."
    ),
    (EventKind.COMPLETED, CLIENT): (
        "Obrigado pela visita, {{ client_name }}! Até a próxima no {{ business_name }}."
    ),
    (EventKind.REMINDER, CLIENT): (
        "Lembrete: amanhã, {{ date }} às {{ time }}, você tem {{ service_name }} "
        "com {{ professional_name }} no {{ business_name }}. "
        "Não pode ir? Cancele em {{ cancel_url }}"
    ),
}


def render_message(kind: EventKind, audience: str, ctx: dict) -> str | None:
    """Texto da mensagem ou None se não há modelo para (evento, público)."""
    source = DEFAULT_TEMPLATES.get((kind, audience))
    if source is None:
        return None
    return _env.from_string(source).render(ctx)
