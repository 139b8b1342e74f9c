from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


class TransportError(RuntimeError):
    """Raised when the resolution API call fails or returns an unusable body."""


class ResolutionFailure(RuntimeError):
    """Raised when a response carries a non-200 status or no content node."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MissingVideoURL(RuntimeError):
    """Raised when a video post has neither a download nor a play URL."""


class DeliverySendFailure(RuntimeError):
    """Raised when both the primary and the fallback send path fail for one item."""
