"""Domain error kinds.

Each subclass carries the HTTP status the API layer answers with, so the
boundary can keep distinct user-facing statuses without string matching.
"""


class JournalError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TradeValidationError(JournalError):
    """Malformed or out-of-range input fields."""
    status_code = 422


class NotFoundError(JournalError):
    """Trade record or market symbol does not exist (or is not the caller's)."""
    status_code = 404


class InsufficientDataError(JournalError):
    """Too few bars/periods for an indicator or the predictor."""
    status_code = 400


class UnauthorizedError(JournalError):
    """Bearer token is invalid, expired, or names an unknown or inactive user."""
    status_code = 401


class UpstreamError(JournalError):
    """An upstream collaborator failed for a reason other than a timeout."""
    status_code = 502


class ServiceUnavailableError(JournalError):
    """The AI summarizer has no credential configured."""
    status_code = 503


class UpstreamTimeoutError(JournalError):
    status_code = 504
