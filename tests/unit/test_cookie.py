from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from linkedin_pipeline.domain.entities.cookie import (
    Cookie,
    cookies_from_json,
    cookies_to_json,
    describe_cookie_status,
    epoch_to_datetime,
    find_session_cookie,
)
from tests.unit._fakes_pipeline import NOW

JAN_2026 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def test_expiry_in_seconds_and_milliseconds_agree():
    assert epoch_to_datetime(1767225600) == JAN_2026
    assert epoch_to_datetime(1767225600000) == JAN_2026
    assert epoch_to_datetime("1767225600.5") == JAN_2026 + timedelta(milliseconds=500)


@pytest.mark.parametrize("raw", [None, "", 0, -1, "soon"])
def test_session_only_or_invalid_expiry_is_none(raw):
    assert epoch_to_datetime(raw) is None


def test_from_dict_reads_extension_export_shape():
    c = Cookie.from_dict(
        {"name": "li_at", "value": "v", "domain": ".www.linkedin.com", "expirationDate": 1767225600, "sameSite": "no_restriction", "httpOnly": True}
    )
    assert c.expires_at == JAN_2026
    assert c.same_site == "None"
    assert c.http_only is True
    assert c.to_dict()["expires"] == pytest.approx(1767225600)


def test_cookie_without_expiry_serializes_as_session_cookie():
    assert Cookie("JSESSIONID", "x").to_dict()["expires"] == -1


def test_expired_and_days_left():
    c = Cookie("li_at", "v", expires_at=NOW + timedelta(days=3))
    assert not c.is_expired(NOW)
    assert c.days_left(NOW) == pytest.approx(3.0)
    assert c.is_expired(NOW + timedelta(days=3))


def test_blob_accepts_array_and_storage_state():
    arr = json.dumps([{"name": "li_at", "value": "a"}, {"name": "", "value": "skip"}])
    state = json.dumps({"cookies": [{"name": "li_at", "value": "b"}], "origins": []})
    assert [c.value for c in cookies_from_json(arr)] == ["a"]
    assert [c.value for c in cookies_from_json(state)] == ["b"]
    with pytest.raises(ValueError):
        cookies_from_json('"just a string"')


def test_json_roundtrip_keeps_expiry():
    cookies = [Cookie("li_at", "v", expires_at=JAN_2026), Cookie("lang", "en")]
    back = cookies_from_json(cookies_to_json(cookies))
    assert back[0].expires_at == JAN_2026
    assert back[1].expires_at is None


def test_session_cookie_needs_a_value():
    assert find_session_cookie([Cookie("li_at", "")]) is None
    assert find_session_cookie([Cookie("lang", "en"), Cookie("li_at", "v")]).value == "v"


def test_cookie_status_labels():
    assert describe_cookie_status([], NOW) == "NO_SESSION_COOKIE"
    assert describe_cookie_status([Cookie("li_at", "v")], NOW) == "NO_EXPIRY_DATE"
    assert describe_cookie_status([Cookie("li_at", "v", expires_at=NOW - timedelta(seconds=1))], NOW) == "EXPIRED"
    assert describe_cookie_status([Cookie("li_at", "v", expires_at=NOW + timedelta(days=3))], NOW) == "VALID_3_DAYS_LEFT"


def test_cookie_status_rounds_half_days_up():
    for days, label in ((2.5, "VALID_3_DAYS_LEFT"), (0.5, "VALID_1_DAYS_LEFT"), (2.4, "VALID_2_DAYS_LEFT")):
        cookie = Cookie("li_at", "v", expires_at=NOW + timedelta(days=days))
        assert describe_cookie_status([cookie], NOW) == label
