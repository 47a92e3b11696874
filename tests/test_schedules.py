from conftest import WEDNESDAY

from agenda.services.schedule_resolver import resolve_working_window
from agenda.utils.tz import BR_TZ


def _url(professional_id):
    return f"/api/v1/professionals/{professional_id}/schedule"


def test_replace_and_read_week(client, db_session, professional):
    payload = {
        "days": [
            {"day_of_week": 3, "is_available": True, "start_time": "10:00", "end_time": "19:00"},
            {"day_of_week": 0, "is_available": False},
        ]
    }
    r = client.put(_url(professional.id), json=payload)
    assert r.status_code == 200, r.text
    assert r.json() == [
        {"day_of_week": 0, "is_available": False, "start_time": None, "end_time": None},
        {"day_of_week": 3, "is_available": True, "start_time": "10:00", "end_time": "19:00"},
    ]
    assert client.get(_url(professional.id)).json() == r.json()

    w = resolve_working_window(db_session, professional.id, WEDNESDAY, BR_TZ)
    assert w.start.hour == 13


def test_put_replaces_previous_week(client, professional):
    client.put(
        _url(professional.id),
        json={"days": [{"day_of_week": 1, "is_available": True, "start_time": "09:00", "end_time": "12:00"}]},
    )
    client.put(
        _url(professional.id),
        json={"days": [{"day_of_week": 2, "is_available": True, "start_time": "09:00", "end_time": "12:00"}]},
    )
    days = [d["day_of_week"] for d in client.get(_url(professional.id)).json()]
    assert days == [2]


def test_invalid_weeks_are_rejected(client, professional):
    bad_order = {"days": [{"day_of_week": 1, "is_available": True, "start_time": "12:00", "end_time": "09:00"}]}
    assert client.put(_url(professional.id), json=bad_order).status_code == 422
    missing_hours = {"days": [{"day_of_week": 1, "is_available": True}]}
    assert client.put(_url(professional.id), json=missing_hours).status_code == 422
    repeated = {"days": [{"day_of_week": 1}, {"day_of_week": 1}]}
    assert client.put(_url(professional.id), json=repeated).status_code == 422
    out_of_range = {"days": [{"day_of_week": 7}]}
    assert client.put(_url(professional.id), json=out_of_range).status_code == 422


def test_unknown_professional(client):
    assert client.get(_url(999)).status_code == 404
    assert client.put(_url(999), json={"days": []}).status_code == 404
