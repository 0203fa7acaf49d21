"""
Pydantic models for request/response validation.

Defines the data contracts for the relay endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


UNIDENTIFIED_MESSAGE = "We couldn't identify this track, please try again"


# ============================================================
# Request Models
# ============================================================

class StreamRequest(BaseModel):
    """
    Body of POST /soundcloud.

    Attributes:
        radio_url: Page URL of the radio/track whose stream is wanted
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {"radioURL": "https://soundcloud.com/artist/track"}
        }
    )

    radio_url: str = Field(
        ...,
        alias="radioURL",
        min_length=1,
        description="Source page URL to resolve"
    )


# ============================================================
# Response Models
# ============================================================

class TrackResult(BaseModel):
    """
    Outcome of a recognition request.

    When `identified` is true the track fields are set; otherwise only
    `message` is. Unset fields are left out of the response body.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "identified": True,
                    "title": "Delicate",
                    "artist": "Taylor Swift",
                    "coverart": "https://is1-ssl.mzstatic.com/image/cover.jpg"
                },
                {
                    "identified": False,
                    "message": UNIDENTIFIED_MESSAGE
                }
            ]
        }
    )

    identified: bool
    title: Optional[str] = None
    artist: Optional[str] = None
    coverart: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def unidentified(cls) -> "TrackResult":
        return cls(identified=False, message=UNIDENTIFIED_MESSAGE)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TrackResult":
        """
        Map a recognition response body to a result.

        Args:
            payload: Decoded JSON from the recognition service

        Returns:
            An identified result built from `track`, or the
            unidentified result when `track` is absent
        """
        track = payload.get("track") if isinstance(payload, dict) else None
        if not track:
            return cls.unidentified()

        images = track.get("images") or {}
        return cls(
            identified=True,
            title=track.get("title"),
            artist=track.get("subtitle"),
            coverart=images.get("coverart")
        )

    def to_response(self) -> dict[str, Any]:
        """JSON body with the fields that apply to this outcome."""
        if self.identified:
            return self.model_dump(include={"identified", "title", "artist", "coverart"})
        return self.model_dump(include={"identified", "message"})


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    service: str = "tune-relay"
    version: str
    api_keys: int
    timestamp: str


class ErrorResponse(BaseModel):
    """Generic error response."""
    message: str
    detail: Optional[Any] = None
