"""Test helper that normalizes sys.path and environment defaults."""

from __future__ import annotations

import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


_DEFAULT_ENV_VARS: dict[str, str] = {
    "APP_ENV": "development",
    "SCHOOLOGY_CONSUMER_KEY": "test-consumer-key",
    "SCHOOLOGY_CONSUMER_SECRET": "test-consumer-secret",
    "SCHOOLOGY_ADMIN_KEY": "test-admin-key",
    "SCHOOLOGY_ADMIN_SECRET": "test-admin-secret",
    "SCHOOLOGY_CALLBACK_URL": "https://example.test/callback",
    "TOKEN_ENCRYPTION_SECRET": "test-secret",
    "GRADEWISE_TOKEN_BACKEND": "memory",
}

for key, value in _DEFAULT_ENV_VARS.items():
    os.environ.setdefault(key, value)
