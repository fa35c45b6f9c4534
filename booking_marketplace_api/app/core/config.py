"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields.  Values
that administrators may want to change without a restart (such as the
deposit rate) can additionally be overridden through the ``settings``
table, see ``SettingsService``.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Booking Marketplace API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    password_reset_expire_minutes: int = int(os.getenv("PASSWORD_RESET_EXPIRE_MINUTES", "30"))
    algorithm: str = os.getenv("ALGORITHM", "HS256")

    # Optional static token for integrations.  Requests carrying this
    # token in the Authorization header are treated as admin user 1.
    admin_static_token: str = os.getenv("ADMIN_API_TOKEN", "")

    # Path or connection string for the SQLite database.  A relative path
    # is resolved relative to the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "marketplace.db")

    # Share of the booking total collected up front.  The runtime setting
    # ``deposit_rate`` takes precedence when present.
    deposit_rate: float = float(os.getenv("DEPOSIT_RATE", "0.3"))
    currency: str = os.getenv("CURRENCY", "MZN")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.
settings = Settings()
