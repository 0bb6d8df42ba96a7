"""Exception types for the career report pipeline.

Every error carries a ``user_message`` that is safe to put in a response
envelope. The exception's own text is for server-side logs only.
"""


class CareerReportError(Exception):
    """Base class for failures surfaced to the caller as an envelope."""

    user_message = 'An unexpected error occurred. Please try again later.'

    def __init__(self, message: str = '', user_message: str | None = None):
        super().__init__(message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class ValidationError(CareerReportError):
    """Caller input is malformed. The message names the field and constraint."""

    def __init__(self, field: str, message: str):
        super().__init__(message, user_message=message)
        self.field = field


class ConfigurationError(CareerReportError):
    """A required credential or setting is missing."""

    user_message = 'API configuration error. Please contact support.'


class UpstreamError(CareerReportError):
    """The remote completion call did not produce usable text."""

    user_message = 'The AI service could not be reached. Please try again later.'


class UpstreamTimeoutError(UpstreamError):
    """The remote call exceeded the allotted wait."""


class UpstreamRequestError(UpstreamError):
    """The provider or transport reported an error."""


class UpstreamResponseError(UpstreamError):
    """The response arrived but had no message content."""

    user_message = 'Failed to get a valid AI response. Please try again later.'
