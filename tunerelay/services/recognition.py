"""
Recognition Client - Identifies uploaded clips via the fingerprinting API.

Sends the stored clip as a multipart upload to the RapidAPI
shazam-core recognize endpoint. The service answers HTTP 405 once a
key's monthly quota is spent; the client then moves on to the next key
in the pool and tries again, strictly one attempt at a time, until a
key succeeds or the pool runs out.
"""

import asyncio
import httpx
import logging
from typing import Any, Optional

from ..core.config import settings, RecognitionConfig
from ..core.errors import (
    QuotaExhaustedError,
    RecognitionNotConfiguredError,
    UpstreamError
)
from ..models.schemas import TrackResult
from ..storage.uploads import UploadedFile

# Configure logging
logger = logging.getLogger(__name__)

AUDIO_CONTENT_TYPE = "audio/wav"
QUOTA_EXHAUSTED_STATUS = 405


class RecognitionClient:
    """
    Client for the external audio-fingerprinting service.

    Holds only read-only configuration, so one instance is shared by
    all requests. Each `identify` call keeps its own key index.
    """

    def __init__(
        self,
        config: Optional[RecognitionConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the client.

        Args:
            config: Recognition settings, defaults to the global settings
            transport: Optional httpx transport, used to stub the service
        """
        config = config or settings.recognition
        self.key_pool = config.key_pool
        self.endpoint = config.endpoint
        self.host = config.host
        self.transport = transport

    async def identify(
        self,
        upload: UploadedFile,
        key_index: int = 0
    ) -> TrackResult:
        """
        Identify the track in an uploaded clip.

        Starts with the key at `key_index` and rotates forward through
        the pool on quota exhaustion. The clip is re-read from disk for
        every attempt, and is never deleted here.

        Args:
            upload: The stored clip
            key_index: Position of the first key to try

        Returns:
            The identified track, or the unidentified result when the
            service found no match

        Raises:
            RecognitionNotConfiguredError: The key pool is empty
            QuotaExhaustedError: Every remaining key reported exhaustion
            UpstreamError: Any other failure talking to the service
        """
        if not len(self.key_pool):
            raise RecognitionNotConfiguredError(
                "No recognition API keys are configured"
            )

        last_index = self.key_pool.last_index
        if not 0 <= key_index <= last_index:
            raise ValueError(f"Key index {key_index} outside pool of {len(self.key_pool)}")

        first_index = key_index

        while True:
            try:
                payload = await self._recognize(upload, key_index)
            except QuotaExhaustedError:
                if key_index >= last_index:
                    tried = key_index - first_index + 1
                    logger.error(
                        f"Recognition quota exhausted on all {tried} key(s) tried "
                        f"(indices {first_index}..{key_index})"
                    )
                    raise
                logger.warning(
                    f"Recognition key {key_index} quota exhausted, "
                    f"retrying with key {key_index + 1}"
                )
                key_index += 1
                continue

            result = TrackResult.from_payload(payload)
            logger.info(
                f"Recognition finished with key {key_index}: "
                f"{'identified' if result.identified else 'no match'}"
            )
            return result

    async def _recognize(
        self,
        upload: UploadedFile,
        key_index: int
    ) -> dict[str, Any]:
        """
        Perform a single recognition attempt with one key.

        Args:
            upload: The stored clip
            key_index: Position of the key to use

        Returns:
            The decoded JSON body of a successful response
        """
        headers = {
            "x-rapidapi-key": self.key_pool[key_index],
            "x-rapidapi-host": self.host
        }

        audio = await asyncio.to_thread(upload.path.read_bytes)
        files = {"file": (upload.filename, audio, AUDIO_CONTENT_TYPE)}

        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(
                    self.endpoint,
                    headers=headers,
                    files=files
                )
        except httpx.HTTPError as e:
            logger.error(f"Recognition request failed: {str(e)}")
            raise UpstreamError(f"Recognition request failed: {str(e)}") from e

        if response.status_code == QUOTA_EXHAUSTED_STATUS:
            raise QuotaExhaustedError(
                self._failure_message(response),
                key_index=key_index
            )

        if response.is_error:
            logger.error(
                f"Recognition service error: "
                f"Status {response.status_code}, Body: {response.text[:200]}"
            )
            raise UpstreamError(
                self._failure_message(response),
                response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                "Recognition service returned an invalid response",
                502
            ) from e

    def _failure_message(self, response: httpx.Response) -> str:
        """Prefer the service's own message, else a generic status line."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
        return f"Request failed with status code {response.status_code}"


# Global recognition client for the application
recognition_client = RecognitionClient()


def get_recognition_client() -> RecognitionClient:
    return recognition_client
