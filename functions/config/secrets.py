"""Secret access for SiteLedger.

Secrets come from the process environment (optionally populated from a
``.env`` file by ``config.settings``).

Usage:
    from config.secrets import get_openai_api_key, get_secret

    api_key = get_openai_api_key()
    custom_secret = get_secret('MY_SECRET_NAME')
"""

import os
from functools import lru_cache
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


def get_secret(secret_id: str) -> Optional[str]:
    """
    Get a secret from the environment.

    Args:
        secret_id: The name of the secret (e.g., 'OPENAI_API_KEY')

    Returns:
        The secret value, or None if not found or blank.
    """
    value = os.environ.get(secret_id)
    if value and value.strip():
        logger.debug("secret_loaded", secret_id=secret_id)
        return value.strip()

    logger.warning("secret_missing", secret_id=secret_id)
    return None


@lru_cache(maxsize=1)
def get_openai_api_key() -> Optional[str]:
    """Get OpenAI API key from the environment."""
    return get_secret('OPENAI_API_KEY')


def clear_secret_cache() -> None:
    """Clear cached secrets. Useful for testing or when secrets are rotated."""
    get_openai_api_key.cache_clear()
