"""
Interactive mail relay client.

Prompts for recipient, subject and message (all required), then an optional
attachment path and display name, and posts the result to the relay's
/FluentEmail/send endpoint.

Usage
-----
mailrelay-client
python -m mailrelay.client

Environment / .env
------------------
EMAIL_API_URL   Send endpoint (default: http://localhost:8000/FluentEmail/send).
"""

import os
import sys
from pathlib import Path
from typing import Callable, Optional

import httpx
from dotenv import load_dotenv

from mailrelay.models.email import EmailDetails
from mailrelay.services import attachment_codec

DEFAULT_API_URL = "http://localhost:8000/FluentEmail/send"


class MissingRequiredField(ValueError):
    """Recipient, subject or message was left blank."""


class AttachmentFileNotFound(FileNotFoundError):
    """The attachment path given does not point to a file."""


def _ask(prompt: Callable[[str], str], text: str) -> str:
    """Prompt once; end of input (Ctrl-D) counts as an empty answer."""
    try:
        return prompt(text)
    except EOFError:
        print()
        return ""


def collect_email_details(prompt: Optional[Callable[[str], str]] = None) -> EmailDetails:
    """
    Ask the user for the email fields and return them as EmailDetails.

    When an attachment path is given its bytes are base64-encoded and the
    display name defaults to the file's base name. A file that exists but
    cannot be read is reported and the email goes out without it.

    Raises:
        MissingRequiredField: If recipient, subject or message is blank.
        AttachmentFileNotFound: If the attachment path does not exist.
    """
    prompt = prompt or input

    recipient = _ask(prompt, "Please enter recipient email address: ")
    subject = _ask(prompt, "Please enter subject: ")
    message = _ask(prompt, "Please enter message: ")

    if not recipient.strip() or not subject.strip() or not message.strip():
        raise MissingRequiredField("Recipient, subject and message are required.")

    attachment_path = _ask(prompt, "Please enter attachment path (optional): ").strip()
    attachment_name = _ask(prompt, "Please enter attachment name (optional): ").strip()

    details = EmailDetails(to=recipient, subject=subject, body=message)

    if not attachment_path:
        return details

    path = Path(attachment_path)
    if not path.is_file():
        raise AttachmentFileNotFound(f"Attachment file not found: {path}")

    try:
        file_bytes = path.read_bytes()
    except OSError as e:
        print(f"Error reading attachment file. {e}")
        return details

    details.attachment = attachment_codec.encode(file_bytes)
    details.attachment_name = attachment_name or path.name
    return details


def post_email(details: EmailDetails, url: str = DEFAULT_API_URL, timeout: float = 30) -> bool:
    """
    POST ``details`` as JSON to the send endpoint.

    Returns True on a 2xx response. Transport-level errors are printed and
    reported as False rather than raised.
    """
    try:
        response = httpx.post(url, json=details.to_wire(), timeout=timeout)
    except httpx.ConnectError:
        print(
            f"Error: Could not connect to {url}\n"
            "Is the relay running? Start it with:\n"
            "  uvicorn mailrelay.main:app --reload",
            file=sys.stderr,
        )
        return False
    except httpx.HTTPError as e:
        print(f"Error: {e}", file=sys.stderr)
        return False

    return response.is_success


def main() -> None:
    load_dotenv()
    url = os.getenv("EMAIL_API_URL") or DEFAULT_API_URL

    try:
        details = collect_email_details()
    except (MissingRequiredField, AttachmentFileNotFound) as e:
        print(e)
        return

    print("Sending email...")
    if post_email(details, url=url):
        print("Email was successfully sent...")
    else:
        print("Email sending failed...")


if __name__ == "__main__":
    main()
