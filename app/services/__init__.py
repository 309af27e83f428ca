"""Service layer exports."""

from .audit_log import AuditLogService
from .credential_cipher import CredentialCipher
from .directory import DirectoryService
from .registrations import RegistrationService
from .session_resolver import SessionResolver, elapsed_hours
from .time_tracking import TimeTrackingService
from .token_manager import TokenManager

__all__ = [
    "AuditLogService",
    "CredentialCipher",
    "DirectoryService",
    "RegistrationService",
    "SessionResolver",
    "TimeTrackingService",
    "TokenManager",
    "elapsed_hours",
]
