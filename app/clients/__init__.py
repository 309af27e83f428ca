"""Expose constructed client wrappers."""

from .jibble import JibbleClient
from .jibble_auth import JibbleOAuthClient
from .json_store import JsonStore

__all__ = [
    "JibbleClient",
    "JibbleOAuthClient",
    "JsonStore",
]
