"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_audit_log_service,
    get_credential_cipher,
    get_directory_service,
    get_jibble_client,
    get_jibble_oauth_client,
    get_json_store,
    get_registration_service,
    get_session_resolver,
    get_time_tracking_service,
    get_token_manager,
)
from .config import SettingsDependency, get_app_settings, get_jibble_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_audit_log_service",
    "get_credential_cipher",
    "get_directory_service",
    "get_jibble_client",
    "get_jibble_oauth_client",
    "get_jibble_settings",
    "get_json_store",
    "get_registration_service",
    "get_session_resolver",
    "get_time_tracking_service",
    "get_token_manager",
]
