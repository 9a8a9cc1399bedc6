"""
Error taxonomy for the file lifecycle.

Each error carries the HTTP status it maps to; the handlers in
``xigra.main`` turn them into ``{"error": ...}`` JSON responses.
"""

from fastapi import status


class XigraError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(XigraError):
    """Missing or unacceptable input."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(XigraError):
    """Unknown id, missing artifact or missing cache entry."""

    status_code = status.HTTP_404_NOT_FOUND


class DecryptionError(XigraError):
    """Ciphertext could not be turned back into file bytes."""

    def __init__(self, message: str, stage: str = "unknown"):
        super().__init__(message)
        self.stage = stage


class RenderError(XigraError):
    """QR image generation failed."""
