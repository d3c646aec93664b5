"""Core exceptions for the proxy."""

from typing import Optional


class ProxyError(Exception):
    """Base exception for proxy errors."""
    
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequestError(ProxyError):
    """Raised when an incoming request is invalid."""
    
    def __init__(
        self, message: str, code: str = "invalid_request", status_code: int = 400
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class AuthenticationError(InvalidRequestError):
    """Raised when the bearer credential is missing or malformed."""

    def __init__(self, message: str, code: str = "invalid_api_key") -> None:
        super().__init__(message, code=code, status_code=401)


class UpstreamUnavailableError(ProxyError):
    """Signals that the Abacus backend could not be reached or understood."""
    
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(ProxyError):
    """Raised when there's an issue with the configuration."""
    pass
