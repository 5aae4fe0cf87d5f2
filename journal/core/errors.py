"""
Journal Errors

Exception hierarchy shared by the AI clients, the store and the API layer.
"""

from __future__ import annotations


class JournalError(Exception):
    """Base exception for all journal backend errors."""


class ConfigurationError(JournalError):
    """A client was constructed without a required setting (e.g. an API key)."""


class GenerationError(JournalError):
    """
    The generative language endpoint failed or returned an unusable body.

    Attributes:
        status_code: HTTP status of the upstream response, if one was received.
        detail: Upstream response body or a description of the shape mismatch.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class VectorSearchUnavailableError(JournalError):
    """Database-side nearest-neighbour search cannot be used."""
