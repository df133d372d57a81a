"""
Classified errors raised by the MWS client.

Every failure is detected, classified into one of these types and propagated
to the caller. Nothing in the SDK retries.
"""
from typing import Optional


class MWSError(Exception):
    """Base class for every error raised by the SDK."""


class ConfigurationError(MWSError):
    """Missing credential field or unknown marketplace id."""


class UnknownOperation(MWSError):
    """Raised when an operation name has no endpoint descriptor."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Unknown MWS operation: {operation}")
        self.operation = operation


class ValidationError(MWSError):
    """Caller input rejected before any network call."""


class ServiceError(MWSError):
    """
    The remote API answered with a structured error.

    `str(error)` is the message text exactly as the service sent it.
    """

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status: Optional[int] = None,
        request_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.request_id = request_id


class TransportError(MWSError):
    """HTTP or network failure without a parseable error envelope."""

    GENERIC_MESSAGE = "An error occurred"

    def __init__(
        self,
        message: str = GENERIC_MESSAGE,
        *,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body


class ReportFormatError(MWSError):
    """A report row does not have as many fields as the header row."""
