"""
FastAPI dependencies exposing configuration to the routes.
"""

from fastapi import Depends

from app.core.config import AppSettings, JibbleSettings, get_settings


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return get_settings()


def get_jibble_settings(
    settings: AppSettings = Depends(get_app_settings),
) -> JibbleSettings:
    """Only the Jibble section, for routes that report on the upstream."""
    return settings.jibble


SettingsDependency = Depends(get_app_settings)

__all__ = ["SettingsDependency", "get_app_settings", "get_jibble_settings"]
