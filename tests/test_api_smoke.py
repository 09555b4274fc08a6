import struct

import pytest
from fastapi.testclient import TestClient

from app.api.routes.peaks import get_processor
from app.main import app
from app.services.audio.peaks import EncodingParams
from app.services.audio.processor import AudioProcessorService


@pytest.fixture
def client(storage_dir):
    defaults = EncodingParams(samples_per_pixel=512, split_channels=True, bits=8)
    app.dependency_overrides[get_processor] = lambda: AudioProcessorService(str(storage_dir), defaults)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_routes_exist(client):
    assert client.get("/test").json() == "SUCCESS"


def test_process_audio_returns_dat(client):
    res = client.get("/api/process-audio", params={"fileName": "stereo.wav"})
    assert res.status_code == 200
    assert res.headers["content-type"] == "application/octet-stream"
    assert res.headers["content-disposition"] == 'attachment; filename="peaks.dat"'
    version, flags, sr, spp, length, channels = struct.unpack("<iIiiIi", res.content[:24])
    assert (version, flags, sr, spp, channels) == (2, 1, 44100, 512, 2)
    assert length == 2048 // 512 // 2
    assert len(res.content) == 24 + length * channels * 2


def test_controller_alias_route(client):
    res = client.get("/audio-processor/process-audio", params={"fileName": "mono.wav"})
    assert res.status_code == 200
    assert len(res.content) == 24 + 4 * 2


def test_query_overrides(client):
    res = client.get(
        "/api/process-audio",
        params={"fileName": "mono.wav", "bits": 16, "samplesPerPixel": 256, "splitChannels": "false"},
    )
    assert res.status_code == 200
    assert struct.unpack("<iIiiIi", res.content[:24]) == (2, 0, 44100, 256, 8, 1)
    assert len(res.content) == 24 + 8 * 4


def test_missing_file_name_is_client_error(client):
    assert client.get("/api/process-audio").status_code == 400
    res = client.get("/api/process-audio", params={"fileName": ""})
    assert res.status_code == 400
    assert res.json()["detail"] == "fileName is required"


def test_invalid_bits_is_client_error(client):
    res = client.get("/api/process-audio", params={"fileName": "mono.wav", "bits": 12})
    assert res.status_code == 400


def test_path_escape_is_client_error(client):
    res = client.get("/api/process-audio", params={"fileName": "../outside.wav"})
    assert res.status_code == 400


def test_missing_file_is_server_error(client):
    res = client.get("/api/process-audio", params={"fileName": "nope.wav"})
    assert res.status_code == 500
    assert res.json()["detail"] == "Error reading file as buffer"


def test_undecodable_file_is_server_error(client):
    res = client.get("/api/process-audio", params={"fileName": "broken.mp3"})
    assert res.status_code == 500


def test_process_audio_json(client):
    res = client.get("/api/process-audio-json", params={"fileName": "mono.wav", "splitChannels": "false"})
    assert res.status_code == 200
    body = res.json()
    assert body["version"] == 2
    assert body["bits"] == 8
    assert body["channels"] == 1
    assert body["length"] == 4
    assert len(body["data"]) == 8
    assert body["data"][0] == pytest.approx(-128.0)


def test_oversized_samples_per_pixel_is_client_error(client):
    res = client.get("/api/process-audio", params={"fileName": "mono.wav", "samplesPerPixel": 3_000_000_000})
    assert res.status_code == 400
    res = client.get("/api/process-audio-json", params={"fileName": "mono.wav", "samplesPerPixel": 2**31})
    assert res.status_code == 400


class _BrokenProcessor(AudioProcessorService):
    def process_path(self, path, params=None):
        raise ValueError("reshape failed")


def test_internal_value_error_is_server_error(storage_dir):
    app.dependency_overrides[get_processor] = lambda: _BrokenProcessor(str(storage_dir))
    try:
        client = TestClient(app, raise_server_exceptions=False)
        res = client.get("/api/process-audio", params={"fileName": "mono.wav"})
        assert res.status_code == 500
    finally:
        app.dependency_overrides.clear()
