"""
Email send router.

Endpoints:
  POST /send  — relay one EmailDetails payload as an outbound email

Responses:
  200  empty body, the transport accepted the email
  400  attachment is not valid base64 (or the body is malformed, see main.py)
  500  the transport refused the email, or faulted
"""

import logging

from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Response

from mailrelay.config import get_settings
from mailrelay.models.email import EmailDetails, EmailRequest
from mailrelay.services import attachment_codec
from mailrelay.services.attachment_codec import InvalidAttachmentEncoding
from mailrelay.services.email_sender import EmailSender
from mailrelay.services.transport import create_transport

logger = logging.getLogger(__name__)

router = APIRouter()


def build_email_sender() -> EmailSender:
    """Build a sender over a fresh transport. Loads mail settings on first use."""
    return EmailSender(create_transport(get_settings()))


def get_sender_factory() -> Callable[[], EmailSender]:
    """
    Dependency returning the sender factory.

    The handler calls it only after the attachment has been decoded, so a bad
    attachment is answered with 400 even when mail settings are broken.
    """
    return build_email_sender


@router.post("/send")
async def send_email(
    details: EmailDetails,
    sender_factory: Callable[[], EmailSender] = Depends(get_sender_factory),
) -> Response:
    """
    Decode the attachment, send the email and map the outcome to a status.

    Faults raised by the transport are logged and left to the framework's
    default error handler, which answers 500.
    """
    attachment = None
    if details.attachment is not None:
        try:
            attachment = attachment_codec.decode(details.attachment)
        except InvalidAttachmentEncoding as e:
            logger.warning(f"Rejected send to {details.to}: {e}")
            raise HTTPException(status_code=400, detail="Attachment is not valid base64")

    email_request = EmailRequest(
        to=details.to,
        subject=details.subject,
        body=details.body,
        attachment_name=details.attachment_name,
        attachment=attachment,
    )

    sender = sender_factory()
    try:
        sent = await sender.send_email(email_request)
    except Exception as e:
        logger.error(f"Email send faulted for {details.to}: {e}")
        raise

    if not sent:
        logger.warning(f"Transport reported failure sending to {details.to}")
        return Response(status_code=500)
    return Response(status_code=200)
