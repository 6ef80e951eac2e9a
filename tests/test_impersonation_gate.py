try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from gradewise.clients import OAuth1Signer
from gradewise.core.errors import AuthorizationError
from gradewise.models.oauth import Credential
from gradewise.services import RUN_AS_HEADER, ActingCredential, ImpersonationGate

try:
    from ._fakes import parse_oauth_header
except ImportError:  # pragma: no cover - fallback for direct execution
    from _fakes import parse_oauth_header  # type: ignore

URL = "https://api.schoology.com/v1/users/42/sections"
CONSUMER = OAuth1Signer(Credential(key="consumer-key", secret="consumer-secret"))
ADMIN = OAuth1Signer(Credential(key="admin-key", secret="admin-secret"))
USER_TOKEN = Credential(key="acc_456", secret="acc_secret")


class RecordingSigner(OAuth1Signer):
    def __init__(self, consumer: Credential) -> None:
        super().__init__(consumer)
        self.calls = 0

    def sign(self, *args, **kwargs):
        self.calls += 1
        return super().sign(*args, **kwargs)


def test_admin_may_run_as_another_user() -> None:
    headers = ImpersonationGate().sign_as(
        URL, ActingCredential.administrator(ADMIN), target_user_id="U1"
    )

    assert headers[RUN_AS_HEADER] == "U1"
    params = parse_oauth_header(headers["Authorization"])
    assert params["oauth_consumer_key"] == "admin-key"
    assert "oauth_token" not in params


def test_admin_without_target_sends_no_run_as_header() -> None:
    headers = ImpersonationGate().sign_as(URL, ActingCredential.administrator(ADMIN))

    assert RUN_AS_HEADER not in headers


def test_ordinary_user_signs_with_own_token() -> None:
    headers = ImpersonationGate().sign_as(URL, ActingCredential.for_user(CONSUMER, USER_TOKEN))

    params = parse_oauth_header(headers["Authorization"])
    assert params["oauth_consumer_key"] == "consumer-key"
    assert params["oauth_token"] == "acc_456"
    assert RUN_AS_HEADER not in headers


def test_ordinary_user_cannot_run_as_before_anything_is_signed() -> None:
    signer = RecordingSigner(Credential(key="consumer-key", secret="consumer-secret"))
    acting = ActingCredential.for_user(signer, USER_TOKEN)
    gate = ImpersonationGate()

    with pytest.raises(AuthorizationError):
        gate.sign_as(URL, acting, target_user_id="99")
    with pytest.raises(AuthorizationError):
        gate.header_factory(acting, target_user_id="99")

    assert signer.calls == 0


def test_header_factory_signs_each_url_freshly() -> None:
    factory = ImpersonationGate().header_factory(
        ActingCredential.administrator(ADMIN), target_user_id="42"
    )

    first = factory(URL)
    second = factory("https://api.schoology.com/v1/users/42")

    assert first[RUN_AS_HEADER] == second[RUN_AS_HEADER] == "42"
    assert (
        parse_oauth_header(first["Authorization"])["oauth_nonce"]
        != parse_oauth_header(second["Authorization"])["oauth_nonce"]
    )
