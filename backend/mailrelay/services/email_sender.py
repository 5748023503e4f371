"""
Email sender service.

Builds a message from an EmailRequest on a MailTransport and reports whether
the transport accepted it. No retries here; a transport fault is logged and
re-raised to the caller.
"""

import logging

from mailrelay.models.email import EmailRequest
from mailrelay.services.transport import MailTransport

logger = logging.getLogger(__name__)


class EmailSender:
    """Sends one EmailRequest per call through the injected transport."""

    def __init__(self, transport: MailTransport):
        self.transport = transport

    async def send_email(self, request: EmailRequest) -> bool:
        """
        Send ``request`` and return the transport's success flag.

        The attachment is included only when there are bytes and a non-blank
        name. Bytes without a name are dropped and the email still goes out.

        Raises:
            Exception: Whatever the transport raised, after logging it.
        """
        try:
            email = (
                self.transport
                .to(request.to)
                .subject(request.subject)
                .body(request.body)
            )

            if request.has_attachment:
                email.attach(request.attachment, request.attachment_name)
            elif request.attachment is not None:
                logger.info(
                    f"Dropping {len(request.attachment):,}-byte attachment for "
                    f"{request.to}: no attachment name supplied"
                )

            result = await email.send_async()
            return result.successful
        except Exception as e:
            logger.error(f"Failed to send email to {request.to}: {e}")
            raise
