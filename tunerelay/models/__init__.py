"""
Models module containing Pydantic schemas.
"""

from .schemas import (
    UNIDENTIFIED_MESSAGE,
    StreamRequest,
    TrackResult,
    HealthResponse,
    ErrorResponse
)

__all__ = [
    "UNIDENTIFIED_MESSAGE",
    "StreamRequest",
    "TrackResult",
    "HealthResponse",
    "ErrorResponse"
]
