"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from datetime import timedelta
from functools import lru_cache

from app.clients import JibbleClient, JibbleOAuthClient, JsonStore
from app.core.config import get_settings
from app.services import (
    AuditLogService,
    CredentialCipher,
    DirectoryService,
    RegistrationService,
    SessionResolver,
    TimeTrackingService,
    TokenManager,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_json_store() -> JsonStore:
    """Provide the shared JSON document store."""
    settings = _settings()
    return JsonStore(settings.storage.db_path)


@lru_cache()
def get_credential_cipher() -> CredentialCipher:
    """Provide symmetric encryption helper for the persisted token."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.jibble.client_secret
    return CredentialCipher(secret=secret)


@lru_cache()
def get_jibble_oauth_client() -> JibbleOAuthClient:
    """Create a singleton client-credentials client."""
    settings = _settings()
    return JibbleOAuthClient(settings.jibble)


@lru_cache()
def get_token_manager() -> TokenManager:
    """Provide the process-wide Jibble token manager."""
    settings = _settings()
    return TokenManager(
        oauth_client=get_jibble_oauth_client(),
        store=get_json_store(),
        cipher=get_credential_cipher(),
        ttl=timedelta(minutes=settings.jibble.token_ttl_minutes),
    )


@lru_cache()
def get_jibble_client() -> JibbleClient:
    """Provide the authenticated Jibble API wrapper."""
    settings = _settings()
    return JibbleClient(settings.jibble, get_token_manager())


def get_audit_log_service() -> AuditLogService:
    """Build the audit log service over the shared store."""
    return AuditLogService(get_json_store())


def get_registration_service() -> RegistrationService:
    """Build the registration service."""
    return RegistrationService(
        get_json_store(),
        get_audit_log_service(),
        people=get_jibble_client(),
    )


def get_session_resolver() -> SessionResolver:
    """Build a session resolver backed by Jibble time entries."""
    return SessionResolver(get_registration_service(), get_jibble_client())


def get_time_tracking_service() -> TimeTrackingService:
    """Build the clock-in/clock-out service."""
    settings = _settings()
    return TimeTrackingService(
        resolver=get_session_resolver(),
        jibble=get_jibble_client(),
        audit_log=get_audit_log_service(),
        tz=settings.timezone,
    )


def get_directory_service() -> DirectoryService:
    """Build the projects/team service."""
    return DirectoryService(jibble=get_jibble_client(), store=get_json_store())


__all__ = [
    "get_audit_log_service",
    "get_credential_cipher",
    "get_directory_service",
    "get_jibble_client",
    "get_jibble_oauth_client",
    "get_json_store",
    "get_registration_service",
    "get_session_resolver",
    "get_time_tracking_service",
    "get_token_manager",
]
