"""SiteLedger configuration settings.

Loads configuration from environment variables with sensible defaults.
Secrets are read through ``config.secrets``.
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

from config.errors import ConfigurationError

# Load .env file for local development
load_dotenv()


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Note: Secrets (OPENAI_API_KEY) are accessed via the config.secrets module;
    the openai_api_key property delegates to it.
    """

    # LLM Configuration (non-secrets)
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o"))
    llm_temperature: float = field(default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.1")))
    llm_timeout_seconds: int = field(default_factory=lambda: int(os.getenv("LLM_TIMEOUT_SECONDS", "60")))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Internal: cached secret value (use openai_api_key property instead)
    _openai_api_key: Optional[str] = field(default=None, repr=False)

    @property
    def openai_api_key(self) -> Optional[str]:
        """Get OpenAI API key from the secrets module."""
        if self._openai_api_key is None:
            from config.secrets import get_openai_api_key
            self._openai_api_key = get_openai_api_key()
        return self._openai_api_key

    def validate(self) -> None:
        """Validate required settings are present.

        Raises:
            ConfigurationError: If required settings are missing.
        """
        if not self.openai_api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY is required to call the language model",
                setting="OPENAI_API_KEY"
            )


# Singleton settings instance
settings = Settings()
