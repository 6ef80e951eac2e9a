"""Pytest configuration shared across the suite."""

import pytest

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from gradewise.clients import MemoryStore
from gradewise.services import OAuthTokenStore, TokenCipherService

try:
    from ._fakes import FakeSchoology
except ImportError:  # pragma: no cover - fallback for direct execution
    from _fakes import FakeSchoology  # type: ignore


@pytest.fixture
def anyio_backend() -> str:
    """Run AnyIO-marked route tests on asyncio only."""
    return "asyncio"


@pytest.fixture
def fake() -> FakeSchoology:
    """A Schoology stand-in recording every request it receives."""
    return FakeSchoology()


@pytest.fixture
def record_backend() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def token_store(record_backend) -> OAuthTokenStore:
    """Token store over a fresh in-memory backend."""
    return OAuthTokenStore(record_backend, TokenCipherService(secret="suite-secret"))
