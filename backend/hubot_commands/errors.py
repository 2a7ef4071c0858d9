from typing import List, Optional


class HubotCommandError(Exception):
    """Base class for errors raised by the bot commands."""
    pass


class ConfigurationError(HubotCommandError):
    """Raised when required settings are missing at startup."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Missing {', '.join(self.missing)} in environment")


class NotFoundError(HubotCommandError):
    """Raised when a lookup has no row to answer with."""
    pass


class WhyNotFoundError(NotFoundError):
    """Raised when no row can be picked from the Why sheet."""
    pass


class BackendUnavailableError(HubotCommandError):
    """Raised when the spreadsheet backend cannot be reached or read."""

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception

    def __str__(self) -> str:
        if self.original_exception:
            return f"{self.message} (Original: {self.original_exception})"
        return self.message
