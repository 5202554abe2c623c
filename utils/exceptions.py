"""
Error types for the marketplace metering connector.

Every failure that crosses the connector boundary is returned as a
MeteringError built by create_error().
"""
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError


@dataclass(frozen=True)
class ErrorDetails:
    """Structured detail extracted from an AWS service error."""

    http_status_code: Optional[int] = None
    http_status_text: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> Dict[str, Any]:
        """Present fields only, keyed the way callers of the connector see them."""
        fields = {
            'httpStatusCode': self.http_status_code,
            'httpStatusText': self.http_status_text,
            'errorCode': self.error_code,
            'errorMessage': self.error_message,
        }
        return {key: value for key, value in fields.items() if value is not None}


class MeteringError(Exception):
    """Uniform error envelope for marketplace metering failures."""

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        details: Optional[ErrorDetails] = None
    ):
        """
        Initialize metering error.

        Args:
            message: Error message
            cause: The original exception
            details: Structured AWS error detail, empty for non-service errors
        """
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details if details is not None else ErrorDetails()
        self.__cause__ = cause

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'details': self.details.to_dict(),
        }


class ClientClosedError(Exception):
    """Raised when an operation is attempted on a closed client handle."""


def _status_text(status_code: Optional[int]) -> Optional[str]:
    if status_code is None:
        return None
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return None


def extract_error_details(exception: BaseException) -> ErrorDetails:
    """
    Pull HTTP status and error code/message out of a botocore ClientError.

    Anything that is not a service error yields empty details.
    """
    if not isinstance(exception, ClientError):
        return ErrorDetails()

    response = exception.response or {}
    error = response.get('Error') or {}
    metadata = response.get('ResponseMetadata') or {}

    status_code = metadata.get('HTTPStatusCode')
    return ErrorDetails(
        http_status_code=status_code,
        http_status_text=_status_text(status_code),
        error_code=error.get('Code'),
        error_message=error.get('Message'),
    )


def create_error(message: str, exception: BaseException) -> MeteringError:
    """
    Wrap an exception in a MeteringError.

    Args:
        message: Error message for the envelope
        exception: The original exception, retained as the cause

    Returns:
        MeteringError with structured details when the exception came
        from the AWS service
    """
    return MeteringError(
        message,
        cause=exception,
        details=extract_error_details(exception),
    )
