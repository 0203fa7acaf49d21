"""
API Routes - FastAPI endpoints for stream resolution and track recognition.

- POST /soundcloud: Resolves a radio page URL to its stream URL
- POST /shazam: Identifies the track in an uploaded audio clip

Both endpoints only proxy to third-party services; errors are raised
as `RelayError` subclasses and rendered by the handlers in main.py.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse

from ..core.config import settings
from ..core.errors import MissingInputError
from ..core.utils import get_timestamp
from ..models.schemas import (
    StreamRequest,
    TrackResult,
    HealthResponse,
    ErrorResponse
)
from ..services.recognition import RecognitionClient, get_recognition_client
from ..services.streams import StreamResolver, get_stream_resolver
from ..storage.uploads import UploadStorage, upload_storage

# Configure logging
logger = logging.getLogger(__name__)

# Create the router
router = APIRouter()


def get_upload_storage() -> UploadStorage:
    return upload_storage


# ============================================================
# Relay Endpoints
# ============================================================

@router.post(
    "/soundcloud",
    response_class=PlainTextResponse,
    summary="Resolve a stream URL",
    description="""
    Resolve the playable stream URL for a radio or track page.

    The URL is returned verbatim as a plain-text body.
    """,
    responses={
        200: {"description": "Stream URL", "content": {"text/plain": {}}},
        500: {"model": ErrorResponse, "description": "Extraction failed"}
    }
)
async def resolve_stream(
    payload: StreamRequest,
    resolver: StreamResolver = Depends(get_stream_resolver)
) -> PlainTextResponse:
    stream_url = await resolver.resolve_stream(payload.radio_url)
    return PlainTextResponse(stream_url)


@router.post(
    "/shazam",
    response_model=TrackResult,
    summary="Identify an audio clip",
    description="""
    Identify the track in an uploaded audio clip.

    The clip is stored for the duration of the request, forwarded to
    the fingerprinting service, and removed afterwards whatever the
    outcome. Quota errors are retried with the next API key.
    """,
    responses={
        200: {"description": "Recognition outcome, identified or not"},
        400: {"model": ErrorResponse, "description": "No file uploaded"},
        405: {"model": ErrorResponse, "description": "All API keys exhausted"},
        503: {"model": ErrorResponse, "description": "No API keys configured"}
    }
)
async def identify_track(
    file: Optional[UploadFile] = File(default=None),
    client: RecognitionClient = Depends(get_recognition_client),
    storage: UploadStorage = Depends(get_upload_storage)
) -> JSONResponse:
    if file is None:
        raise MissingInputError("No file uploaded, send the clip in the 'file' field")

    logger.info(f"Received clip {file.filename!r} ({file.content_type})")

    async with storage.store(file) as upload:
        result = await client.identify(upload)

    return JSONResponse(content=result.to_response())


# ============================================================
# Utility Endpoints
# ============================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Report whether the relay has recognition keys configured."
)
async def health_check(
    client: RecognitionClient = Depends(get_recognition_client)
) -> HealthResponse:
    key_count = len(client.key_pool)

    return HealthResponse(
        status="healthy" if key_count else "degraded",
        version=settings.api_version,
        api_keys=key_count,
        timestamp=get_timestamp()
    )
