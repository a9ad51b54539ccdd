from typing import Any


class SapoError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(SapoError, ValueError):
    """Client configuration is missing required fields or is malformed."""


class AuthenticationError(SapoError):
    """Wrong auth method for the call, a failed OAuth step, or a 401/403 from the API.

    `code` is a stable machine-readable reason, e.g. "INVALID_AUTH_METHOD",
    "MISSING_CODE", "INVALID_HMAC", "INVALID_STATE", "TOKEN_EXCHANGE_FAILED",
    "UNAUTHORIZED" or "FORBIDDEN".
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int | None = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        self.body = body


class ApiError(SapoError):
    """Non-2xx response from the API."""

    def __init__(self, message: str, status_code: int, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    @property
    def errors(self) -> Any:
        if isinstance(self.body, dict):
            return self.body.get("errors", self.body)
        return self.body


class RateLimitError(ApiError):
    def __init__(self, message: str, status_code: int, body: Any = None, retry_after: float = 0.0):
        super().__init__(message, status_code, body)
        self.retry_after = retry_after


def invalid_auth_method() -> AuthenticationError:
    return AuthenticationError(
        "OAuth methods not available for private apps", "INVALID_AUTH_METHOD"
    )
