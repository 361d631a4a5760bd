"""Application error taxonomy for Aurora.

Every error the API turns into a client response derives from AppError and
carries the HTTP status it maps to. The app registers a single handler for
AppError (see aurora.api.app).
"""


class AppError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(AppError):
    """Malformed or missing input."""
    status_code = 400
    default_message = "Bad request"


class UnauthorizedError(AppError):
    """Absent, invalid or expired credential, or unknown referenced user."""
    status_code = 401
    default_message = "Authentication failed"


class InvalidTokenError(UnauthorizedError):
    """Token was not produced by this service's secret, or is malformed."""
    default_message = "Unauthorized: Invalid token signature"


class TokenExpiredError(UnauthorizedError):
    """Token is past its expiry."""
    default_message = "Unauthorized: Token expired"


class NotFoundError(AppError):
    """Resource absent or not owned by the caller (never disambiguated)."""
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    """Unique constraint violation."""
    status_code = 409
    default_message = "Conflict"


class UpstreamTimeoutError(AppError):
    """The completion service did not answer in time."""
    status_code = 408
    default_message = "The request to the chatbot timed out."


class BadGatewayError(AppError):
    """The completion service returned an unusable payload."""
    status_code = 502
    default_message = "invalid upstream response"


class ConfigurationError(AppError):
    """A required setting (secret, credentials) is missing."""
    status_code = 500
    default_message = "Server configuration error"
