"""Exception hierarchy for the FuzzySearch client."""


class FuzzySearchError(Exception):
    """Base exception for all FuzzySearch client errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class TransportError(FuzzySearchError):
    """Raised when the request never got a response (connect, DNS, timeout)."""

    pass


class AuthError(FuzzySearchError):
    """Raised when the API rejects the credential (HTTP 401/403)."""

    def __init__(self, message: str, status_code: int, details: dict | None = None):
        self.status_code = status_code
        super().__init__(message, details)


class DecodeError(FuzzySearchError):
    """Raised when a response body or image bytes cannot be decoded."""

    pass


class ServiceError(FuzzySearchError):
    """Raised for non-2xx responses not covered by a more specific error."""

    def __init__(self, message: str, status_code: int, body: str = "", details: dict | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message, details)


class RateLimitError(ServiceError):
    """Raised when the API answers 429 Too Many Requests."""

    def __init__(
        self,
        message: str,
        status_code: int = 429,
        body: str = "",
        retry_after: float | None = None,
        details: dict | None = None,
    ):
        self.retry_after = retry_after
        super().__init__(message, status_code, body, details)


class ConfigurationError(FuzzySearchError):
    """Raised when there's a configuration error."""

    pass
