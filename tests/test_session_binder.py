try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timezone

import pytest
from starlette.responses import Response

from gradewise.core.config import SessionSettings
from gradewise.services import SessionBinder


@pytest.fixture
def binder() -> SessionBinder:
    return SessionBinder(SessionSettings(), secure=True)


def test_bind_issues_http_only_week_long_cookie(binder) -> None:
    cookie = binder.bind("42")

    assert cookie.name == "schoology_user_id"
    assert cookie.value == "42"
    assert cookie.max_age == 7 * 24 * 60 * 60
    assert cookie.http_only
    assert cookie.secure
    assert cookie.same_site == "lax"
    assert cookie.path == "/"
    assert not cookie.expired


def test_bind_requires_user_id(binder) -> None:
    with pytest.raises(ValueError):
        binder.bind("")


def test_unbind_expires_real_and_demo_cookie(binder) -> None:
    real, demo = binder.unbind()

    assert {real.name, demo.name} == {"schoology_user_id", "demo_session"}
    for cookie in (real, demo):
        assert cookie.value == ""
        assert cookie.max_age == 0
        assert cookie.expires == datetime(1970, 1, 1, tzinfo=timezone.utc)
        assert cookie.expired


def test_secure_flag_follows_environment() -> None:
    local = SessionBinder(SessionSettings(), secure=False)

    assert local.bind("42").secure is False
    assert all(cookie.secure is False for cookie in local.unbind())


def test_read_prefers_real_session_over_demo(binder) -> None:
    assert binder.read({}) is None

    demo = binder.read({"demo_session": "1"})
    assert demo is not None and demo.demo and demo.user_id is None

    real = binder.read({"demo_session": "1", "schoology_user_id": "42"})
    assert real.user_id == "42"
    assert real.demo is False


def test_apply_writes_set_cookie_headers(binder) -> None:
    response = Response()

    binder.apply(response, *binder.unbind())

    headers = response.headers.getlist("set-cookie")
    assert len(headers) == 2
    assert any(h.startswith("schoology_user_id=") for h in headers)
    assert any(h.startswith("demo_session=") for h in headers)
    for header in headers:
        assert "Max-Age=0" in header
        assert "HttpOnly" in header
        assert "Secure" in header
        assert "SameSite=lax" in header
