from fastapi import status
import logging

logger = logging.getLogger(__name__)


class QuotePipelineError(Exception):
    """Base error carrying the HTTP status it maps to at the request boundary."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(QuotePipelineError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class BadRequest(QuotePipelineError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad Request"


class NotFound(QuotePipelineError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not Found"


class ValidationError(QuotePipelineError):
    """A line item (or quote-level discount) is outside its domain.

    Raised before any totals are produced so a batch is accepted whole or not
    at all.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid line items"


class UploadFailed(QuotePipelineError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to upload document"


class InternalError(QuotePipelineError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class InvalidQuoteData(InternalError):
    """A stored quote does not match the canonical quote schema."""

    default_message = "Quote data is invalid"


def error_payload(exc: QuotePipelineError) -> dict[str, str]:
    """Return the JSON body for ``exc`` and log it."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log("%s %s: %s", exc.status_code, type(exc).__name__, exc.message)
    return {"error": exc.message}
