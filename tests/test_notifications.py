import json
from datetime import UTC, datetime, timedelta

import httpx
import pytest
from conftest import NOW, make_appointment

from agenda.jobs.remind_t24 import due_appointments, send_reminders
from agenda.models.appointment import AppointmentStatus
from agenda.notifications import AppointmentEvent, EventKind, NotificationDispatcher
from agenda.notifications.senders import TelegramSender, WhatsAppSender, format_br_phone
from agenda.notifications.templates import BUSINESS, CLIENT, render_message


class FakeSender:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send_text(self, to, text):
        if self.fail:
            raise httpx.ConnectError("sem rede")
        if not to:
            return False
        self.sent.append((to, text))
        return True


@pytest.fixture
def whatsapp():
    return FakeSender()


@pytest.fixture
def dispatcher(TestingSessionLocal, whatsapp):
    return NotificationDispatcher(
        TestingSessionLocal,
        whatsapp=whatsapp,
        telegram=FakeSender(),
        public_base_url="agenda.exemplo.com.br/",
    )


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("(11) 98888-7777", "+5511988887777"),
        ("5511988887777", "+5511988887777"),
        ("98888-7777", None),
        (None, None),
    ],
)
def test_format_br_phone(raw, expected):
    assert format_br_phone(raw) == expected


def test_whatsapp_posts_text_message():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"messages": [{"id": "wamid.1"}]})

    sender = WhatsAppSender("tok", "123", transport=httpx.MockTransport(handler))
    assert sender.send_text("11 98888-7777", "Olá") is True

    req = seen[0]
    assert req.url == "https://graph.facebook.com/v19.0/123/messages"
    assert req.headers["Authorization"] == "Bearer tok"
    assert json.loads(req.content) == {
        "messaging_product": "whatsapp",
        "to": "+5511988887777",
        "type": "text",
        "text": {"body": "Olá"},
    }


def test_whatsapp_error_and_disabled():
    failing = WhatsAppSender(
        "tok", "123", transport=httpx.MockTransport(lambda r: httpx.Response(400, text="bad"))
    )
    assert failing.send_text("11988887777", "Olá") is False

    def _never(request):
        raise AssertionError("não deveria chamar a API")

    disabled = WhatsAppSender(None, None, transport=httpx.MockTransport(_never))
    assert disabled.send_text("11988887777", "Olá") is False


def test_telegram_needs_chat_id():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True})

    sender = TelegramSender("bot-tok", transport=httpx.MockTransport(handler))
    assert sender.send_text(None, "Olá") is False
    assert sender.send_text("42", "Olá") is True
    assert seen == [{"chat_id": "42", "text": "Olá"}]


def test_templates():
    ctx = {
        "client_name": "Maria",
        "service_name": "Corte",
        "professional_name": "João",
        "business_name": "Barbearia do Zé",
        "date": "10/09/2025",
        "time": "09:00",
        "cancel_url": "http://x/cancel/1/t",
    }
    text = render_message(EventKind.CREATED, CLIENT, ctx)
    assert "Maria" in text and "10/09/2025 às 09:00" in text
    assert render_message(EventKind.COMPLETED, BUSINESS, ctx) is None


def test_dispatch_sends_to_client_and_business(dispatcher, whatsapp, db_session, professional, customer):
    ap = make_appointment(db_session, professional, customer, datetime(2025, 9, 10, 12, tzinfo=UTC))
    sent = dispatcher.dispatch(AppointmentEvent(EventKind.CREATED, ap.id))
    assert sent == 2
    (to_client, client_text), (to_business, _) = whatsapp.sent
    assert to_client == customer.phone
    assert to_business == "11999990000"
    # horário local e link de cancelamento
    assert "10/09/2025 às 09:00" in client_text
    assert f"http://agenda.exemplo.com.br/cancel/{ap.id}/{ap.cancellation_token}" in client_text


def test_dispatch_respects_business_switch(dispatcher, whatsapp, db_session, business, professional, customer):
    business.notifications_enabled = False
    db_session.commit()
    ap = make_appointment(db_session, professional, customer, datetime(2025, 9, 10, 12, tzinfo=UTC))
    assert dispatcher.dispatch(AppointmentEvent(EventKind.CREATED, ap.id)) == 0
    assert whatsapp.sent == []


def test_dispatch_never_raises(TestingSessionLocal, db_session, professional, customer):
    broken = NotificationDispatcher(
        TestingSessionLocal, whatsapp=FakeSender(fail=True), telegram=FakeSender()
    )
    ap = make_appointment(db_session, professional, customer, datetime(2025, 9, 10, 12, tzinfo=UTC))
    assert broken.dispatch(AppointmentEvent(EventKind.CREATED, ap.id)) == 0
    assert broken.dispatch(AppointmentEvent(EventKind.CREATED, 999)) == 0


def test_reminders_are_sent_once(dispatcher, whatsapp, db_session, professional, customer):
    due = make_appointment(db_session, professional, customer, NOW + timedelta(hours=24, minutes=30))
    make_appointment(db_session, professional, customer, NOW + timedelta(hours=26))
    make_appointment(
        db_session,
        professional,
        customer,
        NOW + timedelta(hours=24, minutes=15),
        status=AppointmentStatus.CANCELLED,
    )

    assert [a.id for a in due_appointments(db_session, NOW)] == [due.id]
    assert send_reminders(db_session, dispatcher, now=NOW) == 1
    assert whatsapp.sent[0][1].startswith("Lembrete")

    db_session.refresh(due)
    assert due.reminder_sent_at == NOW
    assert send_reminders(db_session, dispatcher, now=NOW) == 0


def test_reminder_failure_does_not_stop_the_batch(TestingSessionLocal, db_session, professional, customer):
    class FlakyDispatcher(NotificationDispatcher):
        def deliver(self, ap, kind):
            if ap.start_time.minute == 0:
                raise RuntimeError("falhou")
            return 1

    flaky = FlakyDispatcher(TestingSessionLocal, whatsapp=FakeSender(), telegram=FakeSender())
    make_appointment(db_session, professional, customer, NOW + timedelta(hours=24))
    ok = make_appointment(db_session, professional, customer, NOW + timedelta(hours=24, minutes=30))
    assert send_reminders(db_session, flaky, now=NOW) == 1
    db_session.refresh(ok)
    assert ok.reminder_sent_at == NOW


def _offline(request):
    raise httpx.ConnectError("sem rede", request=request)


def test_senders_return_false_on_transport_error():
    whatsapp = WhatsAppSender("tok", "123", transport=httpx.MockTransport(_offline))
    telegram = TelegramSender("bot-tok", transport=httpx.MockTransport(_offline))
    assert whatsapp.send_text("11988887777", "Olá") is False
    assert telegram.send_text("42", "Olá") is False


def _channels_with_whatsapp_down(TestingSessionLocal, telegram_seen):
    def telegram_ok(request):
        telegram_seen.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True})

    return NotificationDispatcher(
        TestingSessionLocal,
        whatsapp=WhatsAppSender("tok", "123", transport=httpx.MockTransport(_offline)),
        telegram=TelegramSender("bot-tok", transport=httpx.MockTransport(telegram_ok)),
    )


def test_whatsapp_outage_does_not_block_telegram(
    TestingSessionLocal, db_session, professional, customer
):
    customer.telegram_chat_id = "42"
    db_session.commit()
    telegram_seen = []
    dispatcher = _channels_with_whatsapp_down(TestingSessionLocal, telegram_seen)

    ap = make_appointment(db_session, professional, customer, datetime(2025, 9, 10, 12, tzinfo=UTC))
    assert dispatcher.dispatch(AppointmentEvent(EventKind.CREATED, ap.id)) == 1
    assert telegram_seen[0]["chat_id"] == "42"


def test_reminder_is_stamped_when_one_channel_is_down(
    TestingSessionLocal, db_session, professional, customer
):
    customer.telegram_chat_id = "42"
    db_session.commit()
    telegram_seen = []
    dispatcher = _channels_with_whatsapp_down(TestingSessionLocal, telegram_seen)

    due = make_appointment(db_session, professional, customer, NOW + timedelta(hours=24, minutes=30))
    assert send_reminders(db_session, dispatcher, now=NOW) == 1
    assert telegram_seen[0]["text"].startswith("Lembrete")
    db_session.refresh(due)
    assert due.reminder_sent_at == NOW
