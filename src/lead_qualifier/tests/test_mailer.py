# src/lead_qualifier/tests/test_mailer.py
"""
Unit tests for the SendGrid report mailer.

Tests cover:
- Email address validation
- Mail construction (sender, recipient, subject, content order)
- Successful send results with message IDs
- ConfigurationError for missing API key or sender
- MailDeliveryError for invalid recipients, rejected and failed requests
"""
from unittest.mock import MagicMock

import pytest

from lead_qualifier.errors import ConfigurationError, MailDeliveryError
from lead_qualifier.mailer import ReportMailer, validate_email
from lead_qualifier.models import EmailMessage


@pytest.fixture
def message():
    return EmailMessage(
        to_email="owner@example.com",
        subject="Lead Qualifications Summary (2 leads)",
        html_content="<p>Report</p>",
        text_content="Report",
    )


@pytest.fixture
def mock_client():
    client = MagicMock()
    response = MagicMock()
    response.status_code = 202
    response.headers = {"X-Message-Id": "msg-123"}
    client.send.return_value = response
    return client


@pytest.fixture
def mailer(mock_client):
    return ReportMailer(
        api_key="SG.mock",
        from_email="reports@example.com",
        from_name="Lead Qualifier",
        client=mock_client,
    )


class TestValidateEmail:
    """Tests for validate_email()."""

    @pytest.mark.unit
    @pytest.mark.parametrize("address,expected", [
        ("owner@example.com", True),
        ("first.last+tag@sub.example.co", True),
        ("not-an-email", False),
        ("missing@tld", False),
        ("", False),
        (None, False),
    ])
    def test_validation(self, address, expected):
        assert validate_email(address) is expected


class TestSend:
    """Tests for send()."""

    @pytest.mark.unit
    def test_successful_send(self, mailer, mock_client, message):
        result = mailer.send(message)

        assert result.success is True
        assert result.status_code == 202
        assert result.message_id == "msg-123"
        assert result.to_email == "owner@example.com"
        assert result.sent_at is not None
        mock_client.send.assert_called_once()

    @pytest.mark.unit
    def test_mail_contents(self, mailer, mock_client, message):
        mailer.send(message)

        mail = mock_client.send.call_args[0][0]
        payload = mail.get()
        assert payload["from"]["email"] == "reports@example.com"
        assert payload["personalizations"][0]["to"][0]["email"] == "owner@example.com"
        assert payload["subject"] == "Lead Qualifications Summary (2 leads)"
        assert [c["type"] for c in payload["content"]] == ["text/plain", "text/html"]

    @pytest.mark.unit
    def test_invalid_recipient(self, mailer, mock_client, message):
        bad = message.model_copy(update={"to_email": "nope"})

        with pytest.raises(MailDeliveryError):
            mailer.send(bad)
        mock_client.send.assert_not_called()

    @pytest.mark.unit
    def test_empty_content(self, mailer, message):
        empty = message.model_copy(update={"html_content": "", "text_content": ""})

        with pytest.raises(MailDeliveryError):
            mailer.send(empty)

    @pytest.mark.unit
    def test_rejected_status(self, mailer, mock_client, message):
        mock_client.send.return_value.status_code = 400

        with pytest.raises(MailDeliveryError, match="400"):
            mailer.send(message)

    @pytest.mark.unit
    def test_client_exception_wrapped(self, mailer, mock_client, message):
        mock_client.send.side_effect = RuntimeError("HTTP Error 401: Unauthorized")

        with pytest.raises(MailDeliveryError) as exc_info:
            mailer.send(message)

        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestConfiguration:
    """Tests for missing configuration."""

    @pytest.mark.unit
    def test_missing_api_key(self, message):
        mailer = ReportMailer(from_email="reports@example.com")
        mailer.api_key = ""

        with pytest.raises(ConfigurationError):
            mailer.send(message)

    @pytest.mark.unit
    def test_missing_sender(self, mock_client, message):
        mailer = ReportMailer(api_key="SG.mock", client=mock_client)
        mailer.from_email = ""

        with pytest.raises(ConfigurationError):
            mailer.send(message)
        mock_client.send.assert_not_called()
