"""
Session cookies for the authenticated dashboard.

The real session cookie carries only the opaque Schoology user id; token
material stays in the token store. A separate presence-only demo cookie
grants access to the sample-data dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from starlette.responses import Response

from gradewise.core.config import SessionSettings

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class SessionCookie:
    name: str
    value: str
    max_age: int
    expires: datetime
    secure: bool
    http_only: bool = True
    same_site: str = "lax"
    path: str = "/"

    @property
    def expired(self) -> bool:
        return self.max_age <= 0 or self.expires <= datetime.now(timezone.utc)


@dataclass(frozen=True)
class Session:
    user_id: Optional[str]
    demo: bool = False


class SessionBinder:
    """Map a completed login (or a logout) to cookie instructions."""

    def __init__(self, settings: SessionSettings, *, secure: bool) -> None:
        self._settings = settings
        self._secure = secure

    @property
    def cookie_name(self) -> str:
        return self._settings.cookie_name

    @property
    def demo_cookie_name(self) -> str:
        return self._settings.demo_cookie_name

    def bind(self, user_id: str) -> SessionCookie:
        if not user_id:
            raise ValueError("A session needs a user id.")
        return self._issue(self._settings.cookie_name, str(user_id))

    def bind_demo(self) -> SessionCookie:
        return self._issue(self._settings.demo_cookie_name, "1")

    def unbind(self) -> tuple[SessionCookie, SessionCookie]:
        """Expire both the real and the demo cookie, whichever was set."""
        return (
            self._expire(self._settings.cookie_name),
            self._expire(self._settings.demo_cookie_name),
        )

    def read(self, cookies: Mapping[str, str]) -> Optional[Session]:
        user_id = cookies.get(self._settings.cookie_name)
        if user_id:
            return Session(user_id=user_id)
        if cookies.get(self._settings.demo_cookie_name):
            return Session(user_id=None, demo=True)
        return None

    @staticmethod
    def apply(response: Response, *cookies: SessionCookie) -> Response:
        for cookie in cookies:
            response.set_cookie(
                key=cookie.name,
                value=cookie.value,
                max_age=cookie.max_age,
                expires=cookie.expires,
                path=cookie.path,
                secure=cookie.secure,
                httponly=cookie.http_only,
                samesite=cookie.same_site,
            )
        return response

    def _issue(self, name: str, value: str) -> SessionCookie:
        max_age = self._settings.max_age_seconds
        return SessionCookie(
            name=name,
            value=value,
            max_age=max_age,
            expires=datetime.now(timezone.utc) + timedelta(seconds=max_age),
            secure=self._secure,
        )

    def _expire(self, name: str) -> SessionCookie:
        return SessionCookie(name=name, value="", max_age=0, expires=_EPOCH, secure=self._secure)


__all__ = ["Session", "SessionBinder", "SessionCookie"]
