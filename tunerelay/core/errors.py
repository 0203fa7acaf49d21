"""
Error taxonomy for the relay.

Every error the relay raises on purpose derives from `RelayError` and
carries the HTTP status and message that the centralized exception
handler in `tunerelay.main` turns into a `{"message": ...}` body.
"""

from typing import Optional


class RelayError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MissingInputError(RelayError):
    """The request lacks a required input, e.g. the uploaded file."""

    status_code = 400


class UpstreamError(RelayError):
    """
    A third-party service failed or answered with a non-2xx status.

    The upstream status is kept when there is one so the caller sees
    the same code the service returned; transport failures use 500.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.upstream_status = status_code


class QuotaExhaustedError(UpstreamError):
    """The recognition service reported the key's monthly quota as spent."""

    def __init__(self, message: str, key_index: int):
        super().__init__(message, 405)
        self.key_index = key_index


class RecognitionNotConfiguredError(RelayError):
    """No API keys are configured for the recognition service."""

    status_code = 503
