try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import base64
import hashlib
import hmac

import pytest

from gradewise.clients.oauth1_signer import (
    OAuth1Signer,
    is_placeholder,
    require_credential,
    signing_key,
)
from gradewise.core.errors import ConfigurationError
from gradewise.models.oauth import Credential

try:
    from ._fakes import parse_oauth_header
except ImportError:  # pragma: no cover - fallback for direct execution
    from _fakes import parse_oauth_header  # type: ignore

PHOTOS_URL = "http://photos.example.net/photos?file=vacation.jpg&size=original"
CONSUMER = Credential(key="dpf43f3p2l4k3l03", secret="kd94hf93k423kf44")
TOKEN = Credential(key="nnch734d00sl2jdk", secret="pfkkdhi9sl3r4s00")


def hmac_sha1(key: str, text: str) -> str:
    digest = hmac.new(key.encode("utf-8"), text.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def test_sign_matches_published_example() -> None:
    signer = OAuth1Signer(CONSUMER)

    headers = signer.sign(
        PHOTOS_URL, "GET", TOKEN, nonce="kllo9940pd9333jh", timestamp="1191242096"
    )
    params = parse_oauth_header(headers["Authorization"])

    assert params["oauth_signature"] == "tR3+Ty81lMeYAr/Fid0kMTYa/WM="
    assert params["oauth_signature_method"] == "HMAC-SHA1"
    assert params["oauth_version"] == "1.0"
    assert params["oauth_token"] == TOKEN.key


def test_base_string_sorts_query_and_protocol_parameters() -> None:
    signer = OAuth1Signer(CONSUMER)
    oauth_params = signer.oauth_parameters(TOKEN, nonce="kllo9940pd9333jh", timestamp="1191242096")

    base = signer.base_string(PHOTOS_URL, "get", oauth_params)

    assert base == (
        "GET&http%3A%2F%2Fphotos.example.net%2Fphotos&"
        "file%3Dvacation.jpg%26oauth_consumer_key%3Ddpf43f3p2l4k3l03"
        "%26oauth_nonce%3Dkllo9940pd9333jh%26oauth_signature_method%3DHMAC-SHA1"
        "%26oauth_timestamp%3D1191242096%26oauth_token%3Dnnch734d00sl2jdk"
        "%26oauth_version%3D1.0%26size%3Doriginal"
    )


def test_each_signature_verifies_against_its_own_nonce() -> None:
    signer = OAuth1Signer(CONSUMER)
    url = "https://api.schoology.com/v1/users/me?format=json"

    first = parse_oauth_header(signer.sign(url, "GET", TOKEN)["Authorization"])
    second = parse_oauth_header(signer.sign(url, "GET", TOKEN)["Authorization"])

    assert first["oauth_nonce"] != second["oauth_nonce"]
    assert first["oauth_signature"] != second["oauth_signature"]
    for params in (first, second):
        unsigned = [(k, v) for k, v in params.items() if k != "oauth_signature"]
        base = signer.base_string(url, "GET", unsigned)
        assert params["oauth_signature"] == hmac_sha1(
            signing_key(CONSUMER.secret, TOKEN.secret), base
        )


def test_two_legged_signature_uses_empty_token_secret() -> None:
    signer = OAuth1Signer(CONSUMER)
    url = "https://api.schoology.com/v1/users/42"

    params = parse_oauth_header(signer.sign(url)["Authorization"])

    assert "oauth_token" not in params
    unsigned = [(k, v) for k, v in params.items() if k != "oauth_signature"]
    expected = hmac_sha1(f"{CONSUMER.secret}&", signer.base_string(url, "GET", unsigned))
    assert params["oauth_signature"] == expected


def test_signing_key_escapes_reserved_characters() -> None:
    assert signing_key("a&b c", "x/y") == "a%26b%20c&x%2Fy"
    assert signing_key("secret") == "secret&"


def test_extra_protocol_parameters_are_signed() -> None:
    signer = OAuth1Signer(CONSUMER)
    url = "https://api.schoology.com/v1/oauth/request_token"

    params = parse_oauth_header(
        signer.sign(url, oauth_params={"oauth_callback": "https://example.test/callback"})[
            "Authorization"
        ]
    )

    assert params["oauth_callback"] == "https://example.test/callback"
    unsigned = [(k, v) for k, v in params.items() if k != "oauth_signature"]
    expected = hmac_sha1(f"{CONSUMER.secret}&", signer.base_string(url, "GET", unsigned))
    assert params["oauth_signature"] == expected


def test_non_protocol_parameter_is_rejected() -> None:
    signer = OAuth1Signer(CONSUMER)

    with pytest.raises(ValueError):
        signer.sign("https://api.schoology.com/v1/users/me", oauth_params={"format": "json"})


@pytest.mark.parametrize(
    "key, secret",
    [
        ("", "secret"),
        ("key", None),
        ("your_consumer_key_here", "secret"),
        ("key", "your_real_consumer_secret_here"),
    ],
)
def test_placeholder_credentials_fail_fast(key, secret) -> None:
    with pytest.raises(ConfigurationError):
        require_credential(key, secret, label="consumer")


def test_signer_refuses_placeholder_consumer() -> None:
    with pytest.raises(ConfigurationError):
        OAuth1Signer(Credential(key="your_consumer_key_here", secret="kd94hf93k423kf44"))


def test_is_placeholder_accepts_real_values() -> None:
    assert is_placeholder("   ")
    assert not is_placeholder("dpf43f3p2l4k3l03")


def test_credential_repr_hides_secret() -> None:
    assert "kd94hf93k423kf44" not in repr(CONSUMER)


def test_fixed_nonce_and_timestamp_sign_deterministically() -> None:
    signer = OAuth1Signer(CONSUMER)
    kwargs = dict(nonce="fixed-nonce", timestamp="1700000000")

    first = signer.sign(PHOTOS_URL, "GET", TOKEN, **kwargs)
    second = OAuth1Signer(CONSUMER).sign(PHOTOS_URL, "GET", TOKEN, **kwargs)

    assert first == second
