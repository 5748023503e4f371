"""
Pydantic models for the email relay.

Models:
  EmailDetails  — JSON body posted to POST /FluentEmail/send (attachment as base64 text)
  EmailRequest  — decoded in-process request handed to the EmailSender (attachment as bytes)

EmailDetails is the over-the-wire shape shared by the service and the
interactive client; the router is the only place that turns one into an
EmailRequest.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EmailDetails(BaseModel):
    """
    Wire DTO for a single send request.

    Keys are camelCase on the wire (``attachmentName``); snake_case names are
    accepted too so the client can build the model in Python naturally.
    """

    model_config = ConfigDict(populate_by_name=True)

    to: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    body: str = Field(min_length=1)
    attachment_name: Optional[str] = Field(default=None, alias="attachmentName")
    attachment: Optional[str] = None  # base64-encoded file content

    def to_wire(self) -> dict:
        """Return the JSON-ready payload with camelCase keys."""
        return self.model_dump(by_alias=True)


class EmailRequest(BaseModel):
    """Validated, decoded request. Constructed per request and consumed once."""

    to: str
    subject: str
    body: str
    attachment_name: Optional[str] = None
    attachment: Optional[bytes] = None  # decoded by the router

    @property
    def has_attachment(self) -> bool:
        """True when there are bytes to attach and a non-blank name to attach them under."""
        return (
            self.attachment is not None
            and self.attachment_name is not None
            and self.attachment_name.strip() != ""
        )
