"""
Mail transport tests.

smtplib.SMTP and SMTP_SSL are mocked; no network connections are made.

Coverage:
  - build_message renders headers, body and attachments
  - SmtpTransport: STARTTLS/login/send sequence, SSL mode, refusals vs faults
  - ConsoleTransport always succeeds
  - create_transport provider selection
"""

import smtplib
from dataclasses import replace

import pytest

from mailrelay.config import EmailSettings
from mailrelay.services.transport import (
    ConsoleTransport,
    SmtpTransport,
    TransportFault,
    create_transport,
)


def _make_settings(**overrides) -> EmailSettings:
    settings = EmailSettings(
        sender_email="relay@example.com",
        sender_name="Mail Relay",
        host="smtp.example.com",
        port=587,
        username="relay-user",
        password="relay-pass",
    )
    return replace(settings, **overrides)


def _fill(transport, attachment: tuple[bytes, str] | None = None):
    transport.to("a@b.com").subject("Hi").body("Hello")
    if attachment is not None:
        transport.attach(*attachment)
    return transport


# ===========================================================================
# build_message
# ===========================================================================

class TestBuildMessage:

    def test_sets_headers_and_body(self):
        msg = _fill(SmtpTransport(_make_settings())).build_message()

        assert msg["From"] == "Mail Relay <relay@example.com>"
        assert msg["To"] == "a@b.com"
        assert msg["Subject"] == "Hi"
        assert msg["Message-ID"]
        assert msg.get_content().strip() == "Hello"

    def test_adds_attachment_with_filename(self):
        transport = _fill(SmtpTransport(_make_settings()), (b"%PDF-1.7 data", "report.pdf"))
        msg = transport.build_message()

        attachments = list(msg.iter_attachments())
        assert len(attachments) == 1
        assert attachments[0].get_filename() == "report.pdf"
        assert attachments[0].get_content_type() == "application/pdf"
        assert attachments[0].get_payload(decode=True) == b"%PDF-1.7 data"

    def test_unknown_extension_is_octet_stream(self):
        transport = _fill(SmtpTransport(_make_settings()), (b"\x00\x01", "blob.unknownext"))
        attachment = next(transport.build_message().iter_attachments())
        assert attachment.get_content_type() == "application/octet-stream"

    def test_requires_recipient(self):
        with pytest.raises(ValueError, match="Recipient"):
            SmtpTransport(_make_settings()).subject("Hi").body("Hello").build_message()


# ===========================================================================
# SmtpTransport
# ===========================================================================

class TestSmtpTransport:

    @pytest.mark.asyncio
    async def test_successful_send(self, mocker):
        mock_smtp = mocker.patch("smtplib.SMTP")
        server = mock_smtp.return_value
        server.send_message.return_value = {}

        result = await _fill(SmtpTransport(_make_settings())).send_async()

        assert result.successful is True
        assert result.message_id
        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=30)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("relay-user", "relay-pass")
        server.send_message.assert_called_once()
        server.quit.assert_called_once()

    @pytest.mark.asyncio
    async def test_ssl_mode_skips_starttls(self, mocker):
        mock_ssl = mocker.patch("smtplib.SMTP_SSL")
        mock_plain = mocker.patch("smtplib.SMTP")
        mock_ssl.return_value.send_message.return_value = {}

        settings = _make_settings(use_ssl=True, port=465)
        result = await _fill(SmtpTransport(settings)).send_async()

        assert result.successful is True
        mock_plain.assert_not_called()
        mock_ssl.return_value.starttls.assert_not_called()

    @pytest.mark.asyncio
    async def test_skips_login_without_credentials(self, mocker):
        mock_smtp = mocker.patch("smtplib.SMTP")
        mock_smtp.return_value.send_message.return_value = {}

        settings = _make_settings(username=None, password=None, use_tls=False)
        await _fill(SmtpTransport(settings)).send_async()

        mock_smtp.return_value.login.assert_not_called()
        mock_smtp.return_value.starttls.assert_not_called()

    @pytest.mark.asyncio
    async def test_recipient_refusal_is_unsuccessful(self, mocker):
        mock_smtp = mocker.patch("smtplib.SMTP")
        mock_smtp.return_value.send_message.side_effect = smtplib.SMTPRecipientsRefused(
            {"a@b.com": (550, b"No such user")}
        )

        result = await _fill(SmtpTransport(_make_settings())).send_async()

        assert result.successful is False
        assert "a@b.com" in result.error_messages[0]

    @pytest.mark.asyncio
    async def test_data_refusal_is_unsuccessful(self, mocker):
        mock_smtp = mocker.patch("smtplib.SMTP")
        mock_smtp.return_value.send_message.side_effect = smtplib.SMTPDataError(552, b"Message too large")

        result = await _fill(SmtpTransport(_make_settings())).send_async()

        assert result.successful is False
        assert "552" in result.error_messages[0]

    @pytest.mark.asyncio
    async def test_authentication_error_raises_fault(self, mocker):
        mock_smtp = mocker.patch("smtplib.SMTP")
        mock_smtp.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"Bad credentials")

        with pytest.raises(TransportFault, match="authentication"):
            await _fill(SmtpTransport(_make_settings())).send_async()

        mock_smtp.return_value.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_connection_error_raises_fault(self, mocker):
        mocker.patch("smtplib.SMTP", side_effect=ConnectionRefusedError("refused"))

        with pytest.raises(TransportFault, match="smtp.example.com:587"):
            await _fill(SmtpTransport(_make_settings())).send_async()

    def test_check_connection(self, mocker):
        mocker.patch("smtplib.SMTP")
        assert SmtpTransport(_make_settings()).check_connection() is True

    def test_check_connection_failure(self, mocker):
        mocker.patch("smtplib.SMTP", side_effect=OSError("unreachable"))
        assert SmtpTransport(_make_settings()).check_connection() is False


# ===========================================================================
# ConsoleTransport / factory
# ===========================================================================

class TestConsoleTransport:

    @pytest.mark.asyncio
    async def test_always_successful(self, caplog):
        transport = _fill(ConsoleTransport(_make_settings(provider="console")), (b"abc", "a.txt"))

        with caplog.at_level("INFO", logger="mailrelay.services.transport"):
            result = await transport.send_async()

        assert result.successful is True
        assert "a@b.com" in caplog.text
        assert "a.txt (3 bytes)" in caplog.text


class TestCreateTransport:

    def test_smtp_provider(self):
        assert isinstance(create_transport(_make_settings()), SmtpTransport)

    def test_console_provider(self):
        assert isinstance(create_transport(_make_settings(provider="console")), ConsoleTransport)

    def test_returns_fresh_instance_each_call(self):
        settings = _make_settings()
        assert create_transport(settings) is not create_transport(settings)

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unsupported email provider"):
            create_transport(_make_settings(provider="carrier-pigeon"))
