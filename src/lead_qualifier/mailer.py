"""SendGrid delivery of rendered qualification reports.

Usage:
    >>> mailer = ReportMailer()
    >>> result = mailer.send(message)
    >>> print(result.message_id)
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Content, Email, Mail, Personalization

from .config import config
from .errors import ConfigurationError, MailDeliveryError
from .logging_utils import get_logger
from .models import EmailMessage

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

SUCCESS_STATUS_CODES = (200, 201, 202)


def validate_email(email: str) -> bool:
    """Validate email address format."""
    if not email or not isinstance(email, str):
        return False
    return bool(EMAIL_REGEX.match(email.strip()))


@dataclass
class SendResult:
    """Result of sending a report email.

    Attributes:
        to_email: Recipient email address.
        success: Whether the send operation succeeded.
        status_code: HTTP status code from the API.
        message_id: SendGrid message ID, if returned.
        error: Error message if the send failed.
        sent_at: Timestamp when the email was accepted.
    """

    to_email: str
    success: bool = True
    status_code: int = 0
    message_id: Optional[str] = None
    error: Optional[str] = None
    sent_at: Optional[datetime] = None


class ReportMailer:
    """Delivers EmailMessages through SendGrid.

    The SendGrid client is created on first send, so a missing API key only
    fails when mail is actually dispatched.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        client: Optional[SendGridAPIClient] = None,
    ):
        self.logger = get_logger(__name__)

        self.api_key = api_key or config.SENDGRID_API_KEY
        self.from_email = from_email or config.SENDGRID_FROM_EMAIL
        self.from_name = from_name or config.SENDGRID_FROM_NAME
        self._client = client

    @property
    def client(self) -> SendGridAPIClient:
        """Get or create the SendGrid API client."""
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError(
                    "SendGrid API key required. Set SENDGRID_API_KEY."
                )
            self._client = SendGridAPIClient(api_key=self.api_key)
        return self._client

    def _build_mail(self, message: EmailMessage) -> Mail:
        """Build the SendGrid Mail object for a message."""
        if not self.from_email:
            raise ConfigurationError(
                "From email required. Set SENDGRID_FROM_EMAIL."
            )

        mail = Mail()
        mail.from_email = Email(self.from_email, self.from_name)

        personalization = Personalization()
        personalization.add_to(Email(message.to_email.strip()))
        mail.add_personalization(personalization)

        mail.subject = message.subject

        # text/plain must precede text/html
        if message.text_content:
            mail.add_content(Content("text/plain", message.text_content))
        if message.html_content:
            mail.add_content(Content("text/html", message.html_content))

        return mail

    def send(self, message: EmailMessage) -> SendResult:
        """Send a rendered report.

        Args:
            message: The message to deliver.

        Returns:
            SendResult with the status code and message ID.

        Raises:
            ConfigurationError: If the API key or sender address is missing.
            MailDeliveryError: If the address is invalid or SendGrid rejects
                              the request.
        """
        to_email = message.to_email
        if not validate_email(to_email):
            raise MailDeliveryError(f"Invalid email address: {to_email}")
        if not message.html_content and not message.text_content:
            raise MailDeliveryError("Either html_content or text_content is required")

        mail = self._build_mail(message)
        client = self.client

        self.logger.info(
            "Sending report email",
            extra={"to_email": to_email, "subject": message.subject}
        )

        try:
            response = client.send(mail)
        except Exception as e:
            self.logger.error(
                f"Failed to send email: {e}",
                extra={"to_email": to_email}
            )
            raise MailDeliveryError(f"Failed to send email to {to_email}: {e}") from e

        status_code = response.status_code
        if status_code not in SUCCESS_STATUS_CODES:
            self.logger.error(
                "SendGrid rejected email",
                extra={"to_email": to_email, "status_code": status_code}
            )
            raise MailDeliveryError(f"SendGrid returned status code {status_code}")

        message_id = None
        headers = getattr(response, "headers", None)
        if headers is not None:
            message_id = headers.get("X-Message-Id")

        result = SendResult(
            to_email=to_email,
            success=True,
            status_code=status_code,
            message_id=message_id,
            sent_at=datetime.now(timezone.utc),
        )

        self.logger.info(
            "Email sent",
            extra={"to_email": to_email, "message_id": message_id, "status_code": status_code}
        )
        return result
