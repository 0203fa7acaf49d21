"""
Stream Resolver - Turns a radio/track page URL into a playable stream URL.

Metadata extraction is delegated to yt-dlp, which understands SoundCloud
pages among many others. Extraction is blocking, so it runs in a worker
thread to keep the event loop free.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

import yt_dlp
from yt_dlp.utils import DownloadError

from ..core.errors import UpstreamError
from ..core.utils import truncate_string

# Configure logging
logger = logging.getLogger(__name__)

Extractor = Callable[[str], Optional[dict[str, Any]]]

YDL_OPTIONS = {
    "quiet": True,
    "no_warnings": True,
    "noplaylist": True,
    "format": "bestaudio/best",
}


def extract_info(url: str) -> Optional[dict[str, Any]]:
    """Fetch page metadata, including the selected stream URL, without downloading."""
    with yt_dlp.YoutubeDL(YDL_OPTIONS) as ydl:
        return ydl.extract_info(url, download=False)


class StreamResolver:
    """Resolves source page URLs to stream URLs. No retries, no caching."""

    def __init__(self, extractor: Optional[Extractor] = None):
        self.extractor = extractor or extract_info

    async def resolve_stream(self, radio_url: str) -> str:
        """
        Resolve the stream URL for a source page.

        Args:
            radio_url: Page URL to resolve

        Returns:
            The stream URL exactly as reported by the extractor

        Raises:
            UpstreamError: Extraction failed or produced no stream URL
        """
        logger.info(f"Resolving stream for {truncate_string(radio_url)}")

        try:
            info = await asyncio.to_thread(self.extractor, radio_url)
        except DownloadError as e:
            logger.error(f"Stream extraction failed for {radio_url}: {str(e)}")
            raise UpstreamError(str(e)) from e
        except Exception as e:
            logger.error(f"Stream extractor crashed for {radio_url}: {str(e)}", exc_info=True)
            raise UpstreamError(str(e) or type(e).__name__) from e

        stream_url = (info or {}).get("url")
        if not stream_url:
            logger.error(f"No stream URL found for {radio_url}")
            raise UpstreamError(f"No stream URL found for {radio_url}", 502)

        return stream_url


# Global resolver instance for the application
stream_resolver = StreamResolver()


def get_stream_resolver() -> StreamResolver:
    return stream_resolver
