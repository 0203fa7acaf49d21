import asyncio
import logging

import httpx
import pytest

from conftest import QUOTA_PAYLOAD, TRACK_PAYLOAD, FakeRecognitionService, make_client
from tunerelay.core.errors import (
    QuotaExhaustedError,
    RecognitionNotConfiguredError,
    UpstreamError
)
from tunerelay.models.schemas import UNIDENTIFIED_MESSAGE


def identify(client, clip, key_index=0):
    return asyncio.run(client.identify(clip, key_index))


def test_identified_track_is_mapped(stored_clip):
    service = FakeRecognitionService([(200, TRACK_PAYLOAD)])

    result = identify(make_client(service), stored_clip)

    assert result.identified is True
    assert result.title == "Delicate"
    assert result.artist == "Taylor Swift"
    assert result.coverart == "https://example.com/cover.jpg"
    assert result.to_response() == {
        "identified": True,
        "title": "Delicate",
        "artist": "Taylor Swift",
        "coverart": "https://example.com/cover.jpg",
    }


def test_missing_track_is_unidentified(stored_clip):
    service = FakeRecognitionService([(200, {"matches": [], "tagid": "x"})])

    result = identify(make_client(service), stored_clip)

    assert result.to_response() == {"identified": False, "message": UNIDENTIFIED_MESSAGE}


def test_request_carries_clip_key_and_host(stored_clip):
    service = FakeRecognitionService([(200, TRACK_PAYLOAD)])

    identify(make_client(service), stored_clip)

    request = service.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://shazam-core.p.rapidapi.com/v1/tracks/recognize"
    assert request.headers["x-rapidapi-key"] == "key-0"
    assert request.headers["x-rapidapi-host"] == "shazam-core.p.rapidapi.com"
    assert request.headers["content-type"].startswith("multipart/form-data; boundary=")
    assert int(request.headers["content-length"]) == len(request.content)
    assert b'name="file"; filename="blob-1700000000000-abcdef12"' in request.content
    assert b"Content-Type: audio/wav" in request.content
    assert b"RIFF....WAVEfmt fake audio" in request.content


def test_quota_error_rotates_to_next_key(stored_clip):
    service = FakeRecognitionService([(405, QUOTA_PAYLOAD), (200, TRACK_PAYLOAD)])

    result = identify(make_client(service), stored_clip)

    assert result.identified is True
    assert service.keys_used == ["key-0", "key-1"]


def test_retry_resends_the_whole_clip(stored_clip):
    service = FakeRecognitionService([(405, QUOTA_PAYLOAD), (200, TRACK_PAYLOAD)])

    identify(make_client(service), stored_clip)

    first, second = service.requests
    assert b"RIFF....WAVEfmt fake audio" in second.content
    assert int(second.headers["content-length"]) == len(second.content)
    assert len(first.content) == len(second.content)


def test_all_keys_exhausted_surfaces_last_quota_error(stored_clip):
    service = FakeRecognitionService([(405, QUOTA_PAYLOAD)] * 3)

    with pytest.raises(QuotaExhaustedError) as excinfo:
        identify(make_client(service), stored_clip)

    assert excinfo.value.status_code == 405
    assert excinfo.value.message == QUOTA_PAYLOAD["message"]
    assert excinfo.value.key_index == 2
    assert service.keys_used == ["key-0", "key-1", "key-2"]


def test_rotation_bound_follows_pool_size(stored_clip):
    keys = [f"key-{i}" for i in range(6)]
    service = FakeRecognitionService([(405, QUOTA_PAYLOAD)] * 5 + [(200, TRACK_PAYLOAD)])

    result = identify(make_client(service, keys=keys), stored_clip)

    assert result.identified is True
    assert service.keys_used == keys


def test_single_key_pool_does_not_retry(stored_clip):
    service = FakeRecognitionService([(405, QUOTA_PAYLOAD)])

    with pytest.raises(QuotaExhaustedError):
        identify(make_client(service, keys=["only"]), stored_clip)

    assert service.keys_used == ["only"]


def test_starting_key_index_is_respected(stored_clip):
    service = FakeRecognitionService([(200, TRACK_PAYLOAD)])

    identify(make_client(service), stored_clip, key_index=2)

    assert service.keys_used == ["key-2"]


def test_out_of_range_key_index_is_rejected(stored_clip):
    service = FakeRecognitionService([])

    with pytest.raises(ValueError):
        identify(make_client(service), stored_clip, key_index=3)

    assert service.requests == []


def test_other_upstream_errors_are_not_retried(stored_clip):
    service = FakeRecognitionService([(429, {"message": "Too many requests"})])

    with pytest.raises(UpstreamError) as excinfo:
        identify(make_client(service), stored_clip)

    assert not isinstance(excinfo.value, QuotaExhaustedError)
    assert excinfo.value.status_code == 429
    assert excinfo.value.message == "Too many requests"
    assert service.keys_used == ["key-0"]


def test_upstream_error_without_message_gets_status_line(stored_clip):
    service = FakeRecognitionService([(500, None)])

    with pytest.raises(UpstreamError) as excinfo:
        identify(make_client(service), stored_clip)

    assert excinfo.value.message == "Request failed with status code 500"


def test_transport_failure_is_upstream_500(stored_clip):
    service = FakeRecognitionService([httpx.ConnectError("connection refused")])

    with pytest.raises(UpstreamError) as excinfo:
        identify(make_client(service), stored_clip)

    assert excinfo.value.status_code == 500
    assert "connection refused" in excinfo.value.message


def test_empty_pool_is_not_configured(stored_clip):
    service = FakeRecognitionService([])

    with pytest.raises(RecognitionNotConfiguredError) as excinfo:
        identify(make_client(service, keys=()), stored_clip)

    assert excinfo.value.status_code == 503
    assert service.requests == []


def test_identify_never_deletes_the_clip(stored_clip):
    service = FakeRecognitionService([(405, QUOTA_PAYLOAD)] * 3)

    with pytest.raises(QuotaExhaustedError):
        identify(make_client(service), stored_clip)

    assert stored_clip.path.exists()


def test_non_json_success_body_is_bad_gateway(stored_clip):
    service = FakeRecognitionService([httpx.Response(200, text="<html>maintenance</html>")])

    with pytest.raises(UpstreamError) as excinfo:
        identify(make_client(service), stored_clip)

    assert excinfo.value.status_code == 502
    assert service.keys_used == ["key-0"]


@pytest.mark.parametrize("payload", [{"track": None}, {"track": {}}])
def test_empty_track_is_unidentified(stored_clip, payload):
    service = FakeRecognitionService([(200, payload)])

    result = identify(make_client(service), stored_clip)

    assert result.to_response() == {"identified": False, "message": UNIDENTIFIED_MESSAGE}


def test_track_without_images_has_no_coverart(stored_clip):
    service = FakeRecognitionService([(200, {"track": {"title": "Untitled", "subtitle": "Someone"}})])

    result = identify(make_client(service), stored_clip)

    assert result.to_response() == {
        "identified": True,
        "title": "Untitled",
        "artist": "Someone",
        "coverart": None,
    }


def test_exhaustion_log_counts_keys_actually_tried(stored_clip, caplog):
    service = FakeRecognitionService([(405, QUOTA_PAYLOAD)] * 2)

    with caplog.at_level(logging.ERROR, logger="tunerelay.services.recognition"):
        with pytest.raises(QuotaExhaustedError):
            identify(make_client(service), stored_clip, key_index=1)

    assert service.keys_used == ["key-1", "key-2"]
    assert "all 2 key(s) tried (indices 1..2)" in caplog.text
