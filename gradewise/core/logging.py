"""
Logging utilities for the FastAPI application and maintenance scripts.

Provides a consistent logging format and a helper for masking credentials
before they reach a log line.
"""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )


def mask(value: str | None, visible: int = 6) -> str:
    """Return a log-safe rendering of a key, e.g. ``abc123***``."""
    if not value:
        return "<unset>"
    return f"{value[:visible]}***"


__all__ = ["configure_logging", "mask"]
