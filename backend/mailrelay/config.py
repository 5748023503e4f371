"""
SMTP relay configuration.

Settings come from environment variables; a .env file in the working
directory is loaded first (existing environment variables take precedence).

Environment variables
---------------------
EMAIL_SENDER_ADDRESS   From address for every outbound email (required).
EMAIL_SENDER_NAME      Display name paired with the From address.
MAIL_PROVIDER          "smtp" (default) or "console" for local development.
SMTP_HOST              SMTP relay host (required for the smtp provider).
SMTP_PORT              SMTP relay port (default: 587).
SMTP_USERNAME          Login user; login is skipped when unset.
SMTP_PASSWORD          Login password.
SMTP_USE_TLS           Issue STARTTLS after connecting (default: true).
SMTP_USE_SSL           Connect over implicit TLS instead (default: false).
SMTP_TIMEOUT           Connection timeout in seconds (default: 30).
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

SUPPORTED_PROVIDERS = ("smtp", "console")

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class EmailSettings:
    """Process-wide mail settings, passed explicitly to the transport factory."""

    sender_email: str
    sender_name: str = ""
    host: Optional[str] = None
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    use_ssl: bool = False
    timeout: int = 30
    provider: str = "smtp"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def load_email_settings() -> EmailSettings:
    """
    Build EmailSettings from the environment.

    Raises:
        ValueError: If a required variable is missing, a numeric variable is
            not an integer, or MAIL_PROVIDER names an unknown provider.
    """
    provider = (os.getenv("MAIL_PROVIDER") or "smtp").strip().lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"Unsupported MAIL_PROVIDER {provider!r}. "
            f"Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
        )

    sender_email = os.getenv("EMAIL_SENDER_ADDRESS")
    if not sender_email:
        raise ValueError("EMAIL_SENDER_ADDRESS must be set in environment variables")

    host = os.getenv("SMTP_HOST") or None
    if provider == "smtp" and not host:
        raise ValueError("SMTP_HOST must be set in environment variables")

    return EmailSettings(
        sender_email=sender_email,
        sender_name=os.getenv("EMAIL_SENDER_NAME", ""),
        host=host,
        port=_env_int("SMTP_PORT", 587),
        username=os.getenv("SMTP_USERNAME") or None,
        password=os.getenv("SMTP_PASSWORD") or None,
        use_tls=_env_bool("SMTP_USE_TLS", True),
        use_ssl=_env_bool("SMTP_USE_SSL", False),
        timeout=_env_int("SMTP_TIMEOUT", 30),
        provider=provider,
    )


@lru_cache(maxsize=1)
def get_settings() -> EmailSettings:
    """Load settings once per process. Used as a FastAPI dependency."""
    return load_email_settings()
