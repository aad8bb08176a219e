"""Custom exceptions for notequill."""

from typing import Optional


class NotequillError(Exception):
    """Base exception for notequill errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class LayoutError(NotequillError):
    """Exception raised during block layout."""

    pass


class MediaError(NotequillError):
    """Exception raised while fetching or decoding media."""

    pass


class CompilationError(NotequillError):
    """Exception raised when the final PDF buffer cannot be assembled."""

    pass


class ExportCancelledError(NotequillError):
    """Exception raised when the caller aborts an export in progress."""

    pass
