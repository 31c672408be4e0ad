"""SiteLedger configuration.

This package contains:
- settings: Environment variables and configuration
- secrets: Secret access (environment / .env)
- errors: Custom exceptions and error codes
"""

from config.settings import settings
from config.errors import (
    SiteLedgerError,
    ConfigurationError,
    ValidationError,
    RemoteCallError,
    ProtocolMismatchError,
)
from config.secrets import get_secret, get_openai_api_key

__all__ = [
    "settings",
    "SiteLedgerError",
    "ConfigurationError",
    "ValidationError",
    "RemoteCallError",
    "ProtocolMismatchError",
    "get_secret",
    "get_openai_api_key",
]
