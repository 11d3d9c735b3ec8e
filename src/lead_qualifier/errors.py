"""Typed failures raised by the lead qualification engine.

Callers branch on the exception class, never on message text. Every
exception derives from LeadQualifierError.
"""

from typing import Optional

SERVICE_UNAVAILABLE_MESSAGE = "AI service unavailable. Please try again later."


class LeadQualifierError(Exception):
    """Base exception for lead qualifier errors."""

    pass


class ConfigurationError(LeadQualifierError):
    """Raised when a required setting or credential is not configured."""

    pass


class ServiceUnavailable(LeadQualifierError):
    """Raised when the text-generation service call fails.

    Attributes:
        user_message: Message suitable for showing to an end user.
        status_code: HTTP status returned by the service, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        user_message: str = SERVICE_UNAVAILABLE_MESSAGE,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.user_message = user_message


class AnalysisFailure(LeadQualifierError):
    """Raised when an analysis cannot produce a verdict."""

    pass


class UnparsableResponse(AnalysisFailure):
    """Raised when model output contains no usable verdict.

    The raw text is kept on the exception for diagnostics only and is
    deliberately left out of the message.
    """

    def __init__(self, raw_text: str, message: str = "Could not parse AI response"):
        super().__init__(message)
        self.raw_text = raw_text


class Unauthenticated(LeadQualifierError):
    """Raised when no owner identity is available for a store operation."""

    pass


class NotFound(LeadQualifierError):
    """Raised when a record does not exist or is not owned by the caller."""

    pass


class EmptyInput(LeadQualifierError):
    """Raised when a summary is requested for zero records."""

    pass


class MailDeliveryError(LeadQualifierError):
    """Raised when a report email cannot be delivered."""

    pass
