"""
Configuration module for the tune relay.

Manages environment variables for the recognition service credentials,
upload storage and the HTTP server. Values are read once at import time;
a `.env` file in the working directory is loaded first so local
development does not need exported variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class KeyPool:
    """
    Immutable, ordered pool of recognition API keys.

    Attributes:
        keys: The credential strings, in rotation order
    """
    keys: tuple[str, ...] = ()

    @classmethod
    def parse(cls, raw: str | None) -> "KeyPool":
        """
        Build a pool from a comma-separated list of keys.

        Whitespace around keys is trimmed and empty entries are dropped,
        so "a, b,,c" yields three keys.
        """
        if not raw:
            return cls()
        return cls(tuple(key.strip() for key in raw.split(",") if key.strip()))

    def __len__(self) -> int:
        return len(self.keys)

    def __getitem__(self, index: int) -> str:
        return self.keys[index]

    @property
    def last_index(self) -> int:
        """Highest usable key index, -1 for an empty pool."""
        return len(self.keys) - 1


@dataclass(frozen=True)
class RecognitionConfig:
    """
    Configuration for the external fingerprinting service.

    Attributes:
        key_pool: API keys rotated on quota exhaustion
        endpoint: Full URL of the recognize endpoint
        host: Value of the x-rapidapi-host header
    """
    key_pool: KeyPool = field(default_factory=KeyPool)
    endpoint: str = "https://shazam-core.p.rapidapi.com/v1/tracks/recognize"
    host: str = "shazam-core.p.rapidapi.com"


@dataclass(frozen=True)
class UploadConfig:
    """
    Configuration for transient upload storage.

    Attributes:
        upload_dir: Directory where uploaded clips live until recognition ends
    """
    upload_dir: Path = Path("./tmp")


class Settings:
    """
    Central settings manager that aggregates all configuration.

    Loads configuration from environment variables with fallbacks
    to default values for development.
    """

    def __init__(self):
        self.recognition = RecognitionConfig(
            key_pool=KeyPool.parse(os.getenv("RAPIDAPI_KEY")),
            endpoint=os.getenv(
                "RECOGNITION_URL",
                "https://shazam-core.p.rapidapi.com/v1/tracks/recognize"
            ),
            host=os.getenv("RAPIDAPI_HOST", "shazam-core.p.rapidapi.com")
        )

        self.uploads = UploadConfig(
            upload_dir=Path(os.getenv("UPLOAD_DIR", "./tmp"))
        )

    @property
    def server_port(self) -> int:
        """Server port from environment variable."""
        return int(os.getenv("PORT", "3000"))

    @property
    def cors_origin(self) -> str:
        """Allowed cross-origin value, `*` when unset."""
        return os.getenv("ORIGIN") or "*"

    @property
    def api_title(self) -> str:
        """API title for OpenAPI documentation."""
        return "Tune Relay"

    @property
    def api_version(self) -> str:
        """API version string."""
        return "1.0.0"

    @property
    def api_description(self) -> str:
        """API description for OpenAPI documentation."""
        return (
            "A small relay that resolves radio stream URLs and identifies "
            "uploaded audio clips through an external fingerprinting API."
        )


# Global settings instance - imported throughout the application
settings = Settings()
