"""
Shared test helpers.

RecordingTransport stands in for a real mail transport: it records what was
built and how many times send_async ran, and returns (or raises) whatever the
test configured.
"""

import pytest

from mailrelay.config import EmailSettings
from mailrelay.services.transport import MailTransport, SendResponse


class RecordingTransport(MailTransport):
    """MailTransport that records sends instead of delivering."""

    def __init__(self, successful: bool = True, fault: Exception | None = None):
        super().__init__(EmailSettings(sender_email="relay@example.com", provider="console"))
        self.successful = successful
        self.fault = fault
        self.send_calls = 0

    async def send_async(self) -> SendResponse:
        self.send_calls += 1
        if self.fault is not None:
            raise self.fault
        return SendResponse(successful=self.successful)

    def check_connection(self) -> bool:
        return True


@pytest.fixture()
def make_transport():
    """Return the RecordingTransport class so tests can build one per case."""
    return RecordingTransport
