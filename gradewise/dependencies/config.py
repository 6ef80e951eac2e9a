"""
Settings dependency shared by the routes and the client factories.
"""

from fastapi import Depends

from gradewise.core.config import AppSettings, get_settings


def get_app_settings() -> AppSettings:
    """Process-wide settings; tests swap them via ``app.dependency_overrides``."""
    return get_settings()


SettingsDependency = Depends(get_app_settings)

__all__ = ["SettingsDependency", "get_app_settings"]
