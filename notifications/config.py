"""
Notifications - Configuration.

============================================================
PURPOSE
============================================================
SMTP and message settings for the emailer, read from the
environment (a .env file is loaded first).

The emailer is disabled, not broken, when SMTP_HOST is unset:
sends are logged and skipped.

============================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


DEFAULT_FOOTER = "Sent by the flow catalog. Please do not reply to this email."


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes")


@dataclass
class EmailConfig:
    """
    Email delivery configuration.
    """

    smtp_host: Optional[str] = None
    """SMTP server; None disables sending."""

    smtp_port: int = 587
    """SMTP port. 465 means implicit SSL."""

    smtp_user: Optional[str] = None
    """Login user, only used together with smtp_password."""

    smtp_password: Optional[str] = None
    """Login password."""

    use_tls: bool = True
    """Upgrade plain connections with STARTTLS."""

    timeout_seconds: float = 30.0
    """Socket timeout for the SMTP connection."""

    from_address: str = "flow-catalog@localhost"
    """From header of every message."""

    footer: str = DEFAULT_FOOTER
    """Text appended below the body of every message."""

    @property
    def enabled(self) -> bool:
        return bool(self.smtp_host)

    @property
    def has_credentials(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    @classmethod
    def from_env(cls) -> "EmailConfig":
        """Build the configuration from environment variables."""
        load_dotenv()
        return cls(
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=int(os.getenv("SMTP_PORT", "587")),
            smtp_user=os.getenv("SMTP_USER") or None,
            smtp_password=os.getenv("SMTP_PASSWORD") or None,
            use_tls=_env_flag("SMTP_USE_TLS", True),
            timeout_seconds=float(os.getenv("SMTP_TIMEOUT_SECONDS", "30")),
            from_address=os.getenv("EMAIL_FROM", "flow-catalog@localhost"),
            footer=os.getenv("EMAIL_FOOTER", DEFAULT_FOOTER),
        )
