"""
Core module containing configuration, errors and utilities.
"""

from .config import settings, KeyPool
from .errors import (
    RelayError,
    MissingInputError,
    UpstreamError,
    QuotaExhaustedError,
    RecognitionNotConfiguredError
)
from .utils import generate_upload_name, get_timestamp, truncate_string

__all__ = [
    "settings",
    "KeyPool",
    "RelayError",
    "MissingInputError",
    "UpstreamError",
    "QuotaExhaustedError",
    "RecognitionNotConfiguredError",
    "generate_upload_name",
    "get_timestamp",
    "truncate_string"
]
