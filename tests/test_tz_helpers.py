from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from agenda.utils.time import parse_date_or_datetime, parse_iso_datetime
from agenda.utils.tz import (
    BR_TZ,
    UTC,
    Interval,
    combine_local_to_utc,
    ensure_aware_utc,
    iso_utc,
    local_day_bounds_utc,
    overlaps,
    resolve_timezone,
    split_utc_to_local,
    sunday_based_weekday,
    to_utc,
)


def test_round_trip_local_utc_local():
    d = date(2025, 9, 10)
    t = time(14, 30)
    dtu = combine_local_to_utc(d, t, BR_TZ)
    assert dtu.tzinfo is not None and dtu.utcoffset() == timezone.utc.utcoffset(dtu)
    assert dtu == datetime(2025, 9, 10, 17, 30, tzinfo=UTC)

    d2, dow, t2 = split_utc_to_local(dtu, BR_TZ)
    assert d2 == d
    assert dow == 3  # quarta
    assert (t2.hour, t2.minute) == (14, 30)


def test_split_near_midnight_uses_local_date():
    # 01:00Z do dia 10 ainda é dia 09 em São Paulo
    d, dow, t = split_utc_to_local(datetime(2025, 9, 10, 1, 0, tzinfo=UTC), BR_TZ)
    assert d == date(2025, 9, 9)
    assert dow == 2
    assert t.hour == 22


def test_sunday_based_weekday():
    assert sunday_based_weekday(date(2025, 9, 7)) == 0  # domingo
    assert sunday_based_weekday(date(2025, 9, 8)) == 1
    assert sunday_based_weekday(date(2025, 9, 13)) == 6  # sábado


def test_combine_respects_dst_of_the_date():
    ny = ZoneInfo("America/New_York")
    # horário de verão começou em 09/03/2025
    assert combine_local_to_utc(date(2025, 3, 7), time(9, 0), ny).hour == 14
    assert combine_local_to_utc(date(2025, 3, 10), time(9, 0), ny).hour == 13


def test_local_day_bounds_utc():
    start, end = local_day_bounds_utc(date(2025, 9, 10), BR_TZ)
    assert start == datetime(2025, 9, 10, 3, 0, tzinfo=UTC)
    assert end == datetime(2025, 9, 11, 2, 59, 59, tzinfo=UTC)


def test_overlaps_is_half_open():
    a = datetime(2025, 9, 10, 13, 0, tzinfo=UTC)
    b = datetime(2025, 9, 10, 13, 30, tzinfo=UTC)
    c = datetime(2025, 9, 10, 14, 0, tzinfo=UTC)
    # encostar não é colidir
    assert not overlaps(a, b, b, c)
    assert not Interval(b, c).overlaps(Interval(a, b))
    assert overlaps(a, c, b, c)


def test_resolve_timezone():
    assert resolve_timezone(None).key == "America/Sao_Paulo"
    assert resolve_timezone("Europe/Lisbon").key == "Europe/Lisbon"
    with pytest.raises(ValueError):
        resolve_timezone("Mars/Olympus")


def test_to_utc_naive_is_local_wall_clock():
    assert to_utc(datetime(2025, 9, 10, 9, 0), BR_TZ) == datetime(
        2025, 9, 10, 12, 0, tzinfo=UTC
    )


def test_ensure_aware_and_iso():
    with pytest.raises(ValueError):
        ensure_aware_utc(datetime(2025, 9, 10, 12, 0))
    assert iso_utc(datetime(2025, 9, 10, 9, 0, tzinfo=BR_TZ)) == "2025-09-10T12:00:00Z"


def test_parse_helpers():
    assert parse_iso_datetime("2025-09-10T12:00:00Z") == datetime(
        2025, 9, 10, 12, 0, tzinfo=UTC
    )
    assert parse_date_or_datetime("2025-09-10") == date(2025, 9, 10)
    assert isinstance(parse_date_or_datetime("2025-09-10T12:00:00"), datetime)
    with pytest.raises(ValueError):
        parse_date_or_datetime("amanhã")
