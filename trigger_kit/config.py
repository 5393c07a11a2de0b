"""Application settings, all loaded from environment variables.

Usage:
    from trigger_kit.config import Settings
    settings = Settings()
    client_id = settings.require("airtable_client_id")
"""

import os
from dataclasses import dataclass, field

from trigger_kit.errors import ConfigurationError


def _split_scopes(raw: str) -> list[str]:
    return [scope for scope in raw.replace(",", " ").split() if scope]


@dataclass
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ`` or by passing
    keyword arguments.
    """

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    http_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
    )

    # Airtable OAuth application
    airtable_client_id: str = field(default_factory=lambda: os.getenv("AIRTABLE_CLIENT_ID", ""))
    airtable_client_secret: str = field(
        default_factory=lambda: os.getenv("AIRTABLE_CLIENT_SECRET", "")
    )
    # Empty means the connector's default scope list
    airtable_scopes: list[str] = field(
        default_factory=lambda: _split_scopes(os.getenv("AIRTABLE_SCOPES", ""))
    )

    # Telegram bot
    telegram_bot_token: str = field(default_factory=lambda: os.getenv("TELEGRAM_BOT_TOKEN", ""))

    def require(self, name: str, system: str | None = None) -> str:
        """Return a non-empty setting or raise ConfigurationError."""
        value = getattr(self, name, None)
        if not value:
            raise ConfigurationError(
                f"Setting '{name}' is not configured. Set the {name.upper()} environment variable.",
                system=system,
            )
        return value
