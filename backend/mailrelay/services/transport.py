"""
Mail transport capability.

The EmailSender only ever talks to a MailTransport: a fluent builder with
to/subject/body/attach and an awaitable send. Concrete transports:

  SmtpTransport     — delivers through an SMTP relay with smtplib
  ConsoleTransport  — logs the rendered message instead of sending (MAIL_PROVIDER=console)

Adding a new provider:
  1. Subclass MailTransport and implement send_async / check_connection.
  2. Register it in _TRANSPORTS.
  3. Add its name to config.SUPPORTED_PROVIDERS.

A transport instance accumulates one message, so a fresh instance is created
per request via create_transport().
"""

import asyncio
import logging
import mimetypes
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional

from pydantic import BaseModel

from mailrelay.config import EmailSettings

logger = logging.getLogger(__name__)


class TransportFault(Exception):
    """The transport could not complete a send (network, TLS, auth or protocol error)."""


class SendResponse(BaseModel):
    """Outcome reported by a transport for a single send."""

    successful: bool
    error_messages: list[str] = []
    message_id: Optional[str] = None


class MailTransport(ABC):
    """Fluent, single-message mail builder with an awaitable send."""

    def __init__(self, settings: EmailSettings):
        self.settings = settings
        self._to: Optional[str] = None
        self._subject: str = ""
        self._body: str = ""
        self._attachments: list[tuple[bytes, str]] = []

    def to(self, address: str) -> "MailTransport":
        self._to = address
        return self

    def subject(self, text: str) -> "MailTransport":
        self._subject = text
        return self

    def body(self, text: str) -> "MailTransport":
        self._body = text
        return self

    def attach(self, data: bytes, filename: str) -> "MailTransport":
        self._attachments.append((data, filename))
        return self

    def build_message(self) -> EmailMessage:
        """Render the accumulated fields into a MIME message."""
        if not self._to:
            raise ValueError("Recipient address is required before sending")

        msg = EmailMessage()
        msg["From"] = formataddr((self.settings.sender_name, self.settings.sender_email))
        msg["To"] = self._to
        msg["Subject"] = self._subject
        msg["Message-ID"] = make_msgid()
        msg.set_content(self._body)

        for data, filename in self._attachments:
            content_type, _ = mimetypes.guess_type(filename)
            maintype, subtype = (content_type or "application/octet-stream").split("/", 1)
            msg.add_attachment(data, maintype=maintype, subtype=subtype, filename=filename)

        return msg

    @abstractmethod
    async def send_async(self) -> SendResponse:
        """Send the accumulated message."""

    @abstractmethod
    def check_connection(self) -> bool:
        """Return True if the transport can currently reach its backend."""


# ---------------------------------------------------------------------------
# SMTP
# ---------------------------------------------------------------------------

class SmtpTransport(MailTransport):
    """
    Delivers through an SMTP relay.

    smtplib is blocking, so delivery runs in a worker thread; the request
    awaiting send_async() is the only thing suspended.

    Refusals from the server (rejected sender, recipients or data) come back
    as an unsuccessful SendResponse. Connection failures, TLS or
    authentication errors and timeouts raise TransportFault.
    """

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if s.use_ssl:
            server = smtplib.SMTP_SSL(s.host, s.port, timeout=s.timeout)
        else:
            server = smtplib.SMTP(s.host, s.port, timeout=s.timeout)
        try:
            if s.use_tls and not s.use_ssl:
                server.starttls()
            if s.username and s.password:
                server.login(s.username, s.password)
        except Exception:
            server.close()
            raise
        return server

    def _deliver(self, msg: EmailMessage) -> SendResponse:
        try:
            server = self._connect()
            try:
                refused = server.send_message(msg)
            finally:
                try:
                    server.quit()
                except smtplib.SMTPException:
                    server.close()
        except smtplib.SMTPRecipientsRefused as e:
            return SendResponse(
                successful=False,
                error_messages=[f"{addr}: {code} {resp!r}" for addr, (code, resp) in e.recipients.items()],
            )
        except (smtplib.SMTPSenderRefused, smtplib.SMTPDataError) as e:
            return SendResponse(successful=False, error_messages=[f"{e.smtp_code} {e.smtp_error!r}"])
        except smtplib.SMTPAuthenticationError as e:
            raise TransportFault(f"SMTP authentication failed: {e}") from e
        except smtplib.SMTPException as e:
            raise TransportFault(f"SMTP error: {e}") from e
        except OSError as e:
            raise TransportFault(f"Could not reach SMTP server {self.settings.host}:{self.settings.port}: {e}") from e

        if refused:
            return SendResponse(
                successful=False,
                error_messages=[f"{addr}: {code} {resp!r}" for addr, (code, resp) in refused.items()],
            )
        return SendResponse(successful=True, message_id=msg["Message-ID"])

    async def send_async(self) -> SendResponse:
        msg = self.build_message()
        result = await asyncio.to_thread(self._deliver, msg)
        if result.successful:
            logger.info(f"Email delivered via SMTP to {self._to} ({result.message_id})")
        else:
            logger.warning(f"SMTP server refused email to {self._to}: {result.error_messages}")
        return result

    def check_connection(self) -> bool:
        try:
            server = self._connect()
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"SMTP connection check failed: {e}")
            return False
        try:
            server.quit()
        except smtplib.SMTPException:
            server.close()
        return True


# ---------------------------------------------------------------------------
# Console
# ---------------------------------------------------------------------------

class ConsoleTransport(MailTransport):
    """Logs the rendered message instead of delivering it. Always succeeds."""

    async def send_async(self) -> SendResponse:
        msg = self.build_message()
        lines = [
            f"From: {msg['From']}",
            f"To: {msg['To']}",
            f"Subject: {msg['Subject']}",
            "",
            self._body,
        ]
        for data, filename in self._attachments:
            lines.append(f"[attachment] {filename} ({len(data):,} bytes)")
        logger.info("Console email (not delivered):\n" + "\n".join(lines))
        return SendResponse(successful=True, message_id=msg["Message-ID"])

    def check_connection(self) -> bool:
        return True


_TRANSPORTS: dict[str, type[MailTransport]] = {
    "smtp": SmtpTransport,
    "console": ConsoleTransport,
}


def create_transport(settings: EmailSettings) -> MailTransport:
    """
    Return a fresh transport for ``settings.provider``.

    Raises:
        ValueError: If the provider is not registered.
    """
    try:
        transport_cls = _TRANSPORTS[settings.provider]
    except KeyError:
        raise ValueError(
            f"Unsupported email provider: {settings.provider}. "
            f"Supported providers: {', '.join(_TRANSPORTS)}"
        )
    return transport_cls(settings)
