"""
Email Notification Sender.

============================================================
PURPOSE
============================================================
Sends plain notification emails through the configured SMTP
server.

PRINCIPLES:
- Recipients are validated before anything is sent
- Recipients go in Bcc, never in To
- No retries; delivery failures are raised to the caller
- A disabled emailer logs and skips instead of failing

============================================================
"""

import html
import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import parseaddr
from typing import Callable, List, Optional, Sequence

from .config import EmailConfig
from .exceptions import EmailAddressParseError, EmailDeliveryError


logger = logging.getLogger(__name__)


def parse_address(address: str) -> str:
    """
    Parse a recipient into a bare addr-spec.

    Accepts "user@host" and "Display Name <user@host>".

    Raises:
        EmailAddressParseError: If the address is malformed
    """
    if not isinstance(address, str):
        raise EmailAddressParseError(repr(address))

    _, addr_spec = parseaddr(address)
    local, sep, domain = addr_spec.rpartition("@")
    if not sep or not local or not domain or any(ch.isspace() for ch in addr_spec):
        raise EmailAddressParseError(address)
    return addr_spec


class Emailer:
    """
    Sends notification emails over SMTP.

    The SMTP classes are injectable so tests can substitute
    the transport.
    """

    def __init__(
        self,
        config: EmailConfig,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
        smtp_ssl_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP_SSL,
    ) -> None:
        self._config = config
        self._smtp_factory = smtp_factory
        self._smtp_ssl_factory = smtp_ssl_factory

    @property
    def config(self) -> EmailConfig:
        return self._config

    def send_email(self, subject: str, body: str, to: Sequence[str]) -> None:
        """
        Send an email to the given recipients.

        Args:
            subject: Subject line
            body: Plain text body
            to: Recipient addresses

        Raises:
            EmailAddressParseError: If any recipient is malformed
            EmailDeliveryError: If the SMTP exchange fails
        """
        recipients = [parse_address(address) for address in (to or [])]

        if not self._config.enabled:
            logger.warning(f"Not sending email '{subject}': no SMTP host configured")
            return

        if not recipients:
            logger.warning(f"Not sending email '{subject}': no recipients")
            return

        message = self.build_message(subject, body, recipients)
        self._deliver(message)

        logger.info(
            f"Email '{subject}' sent to {len(recipients)} recipient(s) "
            f"via {self._config.smtp_host}"
        )

    def build_message(self, subject: str, body: str, recipients: List[str]) -> EmailMessage:
        """Build the message with a text part and an HTML alternative."""
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self._config.from_address
        message["Bcc"] = ", ".join(recipients)

        message.set_content(f"{body}\n\n--\n{self._config.footer}\n")
        message.add_alternative(self._render_html(body), subtype="html")
        return message

    def _render_html(self, body: str) -> str:
        body_html = html.escape(body).replace("\n", "<br/>")
        footer_html = html.escape(self._config.footer)
        return (
            "<html><body>"
            f"<div>{body_html}</div>"
            "<br/><hr/>"
            f"<div style=\"color:#777;font-size:small\">{footer_html}</div>"
            "</body></html>"
        )

    def _open_connection(self) -> smtplib.SMTP:
        config = self._config
        if config.smtp_port == 465:
            return self._smtp_ssl_factory(
                config.smtp_host,
                config.smtp_port,
                timeout=config.timeout_seconds,
                context=ssl.create_default_context(),
            )

        server = self._smtp_factory(
            config.smtp_host,
            config.smtp_port,
            timeout=config.timeout_seconds,
        )
        if config.use_tls:
            server.starttls(context=ssl.create_default_context())
        return server

    def _deliver(self, message: EmailMessage) -> None:
        try:
            with self._open_connection() as server:
                if self._config.has_credentials:
                    server.login(self._config.smtp_user, self._config.smtp_password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email delivery via {self._config.smtp_host} failed: {e}")
            raise EmailDeliveryError(self._config.smtp_host, str(e)) from e


# =============================================================
# PROCESS-WIDE EMAILER
# =============================================================

_emailer: Optional[Emailer] = None


def get_emailer() -> Emailer:
    """Get the process-wide emailer, creating it from the environment if necessary."""
    global _emailer
    if _emailer is None:
        _emailer = Emailer(EmailConfig.from_env())
    return _emailer


def reset_emailer() -> None:
    """Forget the process-wide emailer; the next call rebuilds it."""
    global _emailer
    _emailer = None
