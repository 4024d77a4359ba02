"""
Custom exceptions for makerstock.
"""


class MakerStockError(Exception):
    """Base exception for all makerstock errors."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(MakerStockError):
    """Raised when a required setting is missing."""

    def __init__(self, setting: str, details: str | None = None):
        super().__init__(f"{setting} is not configured", details=details)
        self.setting = setting


class NetworkError(MakerStockError):
    """Raised when a network request fails."""

    def __init__(self, url: str, status_code: int | None = None, details: str | None = None):
        message = f"Request failed: {url}"
        if status_code:
            message += f" (status {status_code})"
        super().__init__(message, details=details)
        self.url = url
        self.status_code = status_code


class ResponseFormatError(MakerStockError):
    """Raised when a response payload does not have the expected shape."""

    def __init__(self, source: str, details: str | None = None):
        super().__init__(f"Unexpected response from {source}", details=details)
        self.source = source


class ValidationError(MakerStockError):
    """Raised when user input fails validation."""

    def __init__(self, field: str, value: str, reason: str):
        super().__init__(reason, details=None)
        self.field = field
        self.value = value
        self.reason = reason


class CacheError(MakerStockError):
    """Raised when a durable cache operation fails."""

    def __init__(self, operation: str, details: str | None = None):
        super().__init__(f"Cache error during {operation}", details=details)
        self.operation = operation
