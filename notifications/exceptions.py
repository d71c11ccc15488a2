"""
Notification Exceptions.

Raised by the emailer and left for the caller to handle.
"""

from typing import Any, Optional


class NotificationError(Exception):
    """Base exception for all notification errors."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class EmailAddressParseError(NotificationError):
    """A recipient address could not be parsed."""

    def __init__(self, address: str) -> None:
        super().__init__(
            f"Cannot parse email address: {address!r}",
            details={"address": address},
        )
        self.address = address


class EmailDeliveryError(NotificationError):
    """The SMTP server refused or failed the delivery."""

    def __init__(self, smtp_host: str, original_error: str) -> None:
        super().__init__(
            f"Email delivery via {smtp_host} failed: {original_error}",
            details={"smtp_host": smtp_host, "original_error": original_error},
        )
        self.smtp_host = smtp_host
