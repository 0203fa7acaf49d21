"""
Service module for the third-party collaborators the relay fronts.
"""

from .recognition import recognition_client, get_recognition_client, RecognitionClient
from .streams import stream_resolver, get_stream_resolver, StreamResolver

__all__ = [
    "recognition_client",
    "get_recognition_client",
    "RecognitionClient",
    "stream_resolver",
    "get_stream_resolver",
    "StreamResolver"
]
