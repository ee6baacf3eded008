"""Core exceptions for the proxy."""


class ProxyError(Exception):
    """Base exception for proxy errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequestError(ProxyError):
    """Raised when an incoming request is invalid."""

    def __init__(self, message: str, code: str = "invalid_request") -> None:
        super().__init__(message)
        self.code = code


class AuthenticationError(ProxyError):
    """Raised when the bearer credential is missing or wrong."""
    pass


class BackendError(ProxyError):
    """Raised when the session backend fails to serve a call."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendTimeoutError(BackendError):
    """Raised when a backend call outlives its deadline."""

    def __init__(self, message: str = "provider timeout", timeout_s: float | None = None) -> None:
        super().__init__(message)
        self.timeout_s = timeout_s


class ConfigurationError(ProxyError):
    """Raised when there's an issue with the configuration."""
    pass
