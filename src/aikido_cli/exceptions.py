# Custom exceptions for aikido-cli

from typing import Any, Optional


class AikidoCliError(Exception):
    """Base exception for all application-specific errors."""
    pass

class ConfigError(AikidoCliError):
    """Raised for configuration-related problems (missing api key, unreadable config)."""
    pass

class InvalidOptionError(AikidoCliError):
    """Raised when a user-supplied option fails validation."""
    def __init__(self, option: str, message: str):
        self.option = option
        self.message = message
        super().__init__(message)


class ApiError(AikidoCliError):
    """Raised when a call to the Aikido API fails at the HTTP or transport level."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
    ):
        self.message = message
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            message = f"[{status_code}] {message}"
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class ScanStartError(AikidoCliError):
    """Raised when the start call succeeds but returns no scan handle."""

    def __init__(self, message: str, response: Any = None):
        self.response = response
        super().__init__(message)


class PollTimeoutError(AikidoCliError):
    """Raised when polling exceeds the configured attempt or time bound."""

    def __init__(self, message: str, attempts: int, elapsed: float):
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(message)
