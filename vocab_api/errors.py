"""Exception hierarchy for the vocabulary lookup service.

Every error carries the HTTP status it maps to and a ``public_message`` that is
safe to send to clients. Provider and storage errors keep their internal detail
in ``str(exc)`` for the server log only.
"""

from __future__ import annotations

from typing import Optional


class VocabError(Exception):
    """Base exception for all vocabulary service errors."""

    status_code = 500
    default_public_message = "Internal server error"

    def __init__(self, message: str = "", *, public_message: Optional[str] = None):
        super().__init__(message or public_message or self.default_public_message)
        self.public_message = public_message or self.default_public_message


class InvalidInputError(VocabError):
    """Client gave empty or malformed input."""

    status_code = 400
    default_public_message = "Invalid input"

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, public_message=message)


class SchemaValidationError(VocabError):
    """A payload failed structural validation at ``field``."""

    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}", public_message=message)
        self.field = field


class NotFoundError(VocabError):
    """Word absent from the store, or the provider had no usable definition."""

    status_code = 404
    default_public_message = "Word not found"

    def __init__(self, message: str = "Word not found"):
        super().__init__(message, public_message=message)


class GenerativeProviderError(VocabError):
    """Upstream AI call failed, timed out, or returned something unparsable."""

    default_public_message = "Lookup failed"


class StorageUnavailableError(VocabError):
    """Backing store unreachable."""

    default_public_message = "Storage unavailable"
