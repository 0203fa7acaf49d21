import os
import sys

import httpx
import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tunerelay.api.routes import get_upload_storage
from tunerelay.core.config import KeyPool, RecognitionConfig
from tunerelay.main import app
from tunerelay.services.recognition import RecognitionClient, get_recognition_client
from tunerelay.services.streams import StreamResolver, get_stream_resolver
from tunerelay.storage.uploads import UploadStorage, UploadedFile


TRACK_PAYLOAD = {
    "track": {
        "title": "Delicate",
        "subtitle": "Taylor Swift",
        "images": {"coverart": "https://example.com/cover.jpg"},
    }
}

QUOTA_PAYLOAD = {"message": "You have exceeded the MONTHLY quota for Requests on your current plan"}


class FakeRecognitionService:
    """Scripted stand-in for the fingerprinting API, one response per call."""

    def __init__(self, responses, upload_dir=None):
        self.responses = list(responses)
        self.requests = []
        self.files_on_disk = []
        self.upload_dir = upload_dir

    def __call__(self, request):
        self.requests.append(request)
        if self.upload_dir is not None:
            self.files_on_disk.append(sorted(p.name for p in self.upload_dir.iterdir()))
        response = self.responses[len(self.requests) - 1]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        status, body = response
        return httpx.Response(status, json=body)

    @property
    def keys_used(self):
        return [request.headers["x-rapidapi-key"] for request in self.requests]


def make_client(service, keys=("key-0", "key-1", "key-2")):
    config = RecognitionConfig(key_pool=KeyPool(tuple(keys)))
    return RecognitionClient(config, transport=httpx.MockTransport(service))


@pytest.fixture
def upload_dir(tmp_path):
    directory = tmp_path / "uploads"
    directory.mkdir()
    return directory


@pytest.fixture
def stored_clip(upload_dir):
    path = upload_dir / "blob-1700000000000-abcdef12"
    path.write_bytes(b"RIFF....WAVEfmt fake audio")
    return UploadedFile(
        path=path,
        filename=path.name,
        original_filename="clip.wav",
        content_type="audio/wav"
    )


@pytest.fixture
def api(upload_dir):
    """TestClient wired to a temp upload dir; tests install their own services."""
    app.dependency_overrides[get_upload_storage] = lambda: UploadStorage(upload_dir)
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def use_recognition():
    def install(client):
        app.dependency_overrides[get_recognition_client] = lambda: client
    return install


@pytest.fixture
def use_extractor():
    def install(extractor):
        resolver = StreamResolver(extractor=extractor)
        app.dependency_overrides[get_stream_resolver] = lambda: resolver
    return install
