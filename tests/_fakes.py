"""In-process Schoology stand-in served through ``httpx.MockTransport``."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional
from urllib.parse import unquote

import httpx

Handler = Callable[[httpx.Request], httpx.Response]


def parse_oauth_header(value: str) -> dict[str, str]:
    assert value.startswith("OAuth ")
    params = {}
    for part in value[len("OAuth "):].split(","):
        name, _, raw = part.strip().partition("=")
        params[name] = unquote(raw.strip('"'))
    return params


class FakeSchoology:
    """Routes by path suffix; individual routes can be swapped per test."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, Handler] = {
            "/oauth/request_token": lambda request: httpx.Response(
                200, text="oauth_token=req_123&oauth_token_secret=req_secret"
            ),
            "/oauth/access_token": lambda request: httpx.Response(
                200, text="oauth_token=acc_456&oauth_token_secret=acc_secret"
            ),
            "/users/me": lambda request: httpx.Response(
                200, json={"id": 42, "name_display": "Jane Parent"}
            ),
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for suffix, route in self.routes.items():
            if request.url.path.endswith(suffix):
                return route(request)
        return httpx.Response(404, json={"error": "not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def request_to(self, suffix: str) -> Optional[httpx.Request]:
        for request in self.requests:
            if request.url.path.endswith(suffix):
                return request
        return None

    def oauth_params(self, suffix: str) -> dict[str, str]:
        request = self.request_to(suffix)
        assert request is not None, f"no request to {suffix}"
        return parse_oauth_header(request.headers["Authorization"])


def json_route(payload: Any, status_code: int = 200) -> Handler:
    return lambda request: httpx.Response(status_code, json=payload)
