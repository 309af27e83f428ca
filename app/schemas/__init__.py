"""Public schema exports."""

from .jibble import TimeEntry
from .requests import ClockInRequest, ClockOutRequest, RegistrationRequest

__all__ = [
    "ClockInRequest",
    "ClockOutRequest",
    "RegistrationRequest",
    "TimeEntry",
]
