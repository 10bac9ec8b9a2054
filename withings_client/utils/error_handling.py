"""Error types raised by the Withings client."""

from typing import Optional


class WithingsError(Exception):
    """Base class for all Withings client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


# ---------------------------------------------------------------------------
# Authentication errors
# ---------------------------------------------------------------------------
class AuthError(WithingsError):
    """Raised when authorization or token handling fails."""


class ConfigMissing(AuthError):
    """The token config file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Config file not found: {path}")


class ConfigUnreadable(AuthError):
    """The token config file exists but cannot be read or parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Config file {path} is unreadable: {reason}")


class ConfigWriteFailed(AuthError):
    """The token config file could not be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not write config file {path}: {reason}")


class ListenerBindFailed(AuthError):
    """The local OAuth callback listener could not bind its address."""

    def __init__(self, host: str, port: int, reason: str):
        self.host = host
        self.port = port
        super().__init__(f"Could not listen on {host}:{port}: {reason}")


class TokenExchangeFailed(AuthError):
    """The token endpoint rejected the request or returned an unusable response."""

    def __init__(
        self,
        error: str,
        error_description: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ):
        self.error = error
        self.error_description = error_description
        message = f"Token error: {error}"
        if error_description:
            message += f" - {error_description}"
        super().__init__(message, status_code=status_code, response_body=response_body)


class StateMismatch(AuthError):
    """The state returned on the redirect does not match the one sent."""


class AuthorizationDenied(AuthError):
    """The redirect did not carry an authorization code."""


# ---------------------------------------------------------------------------
# Measurement API errors
# ---------------------------------------------------------------------------
class ApiError(WithingsError):
    """Raised when a data API call fails."""


class HttpFailure(ApiError):
    """Transport failure, non-2xx response or non-zero Withings status."""


class DecodeFailure(ApiError):
    """The response body is not JSON or does not match the expected schema."""
