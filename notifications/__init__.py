"""
Notifications Module.

Email delivery for the catalog's jobs and tooling.

    from notifications import get_emailer

    get_emailer().send_email("subject", "body", ["someone@example.com"])
"""

from .config import EmailConfig
from .emailer import Emailer, get_emailer, parse_address, reset_emailer
from .exceptions import EmailAddressParseError, EmailDeliveryError, NotificationError


__all__ = [
    "EmailAddressParseError",
    "EmailConfig",
    "EmailDeliveryError",
    "Emailer",
    "NotificationError",
    "get_emailer",
    "parse_address",
    "reset_emailer",
]
