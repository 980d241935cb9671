"""Pytest configuration and shared fixtures."""

import json
import logging

import httpx
import pytest

API_PREFIX = "/dream-machine/v1"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x01\x02\x03" * 8
MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 32


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """No real credentials, .env file or ~/.config leak into a test."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("DREAMGEN_CONFIG_DIR", str(config_dir))
    for name in ("LUMA_API_KEY", "DREAMGEN_BASE_URL", "DREAMGEN_TIMEOUT", "DREAMGEN_DOWNLOAD_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield config_dir
    # The CLI callback binds a handler to the runner's stderr; drop it once that stream is gone.
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)


@pytest.fixture
def sample_image(tmp_path):
    path = tmp_path / "ref.png"
    path.write_bytes(PNG_BYTES)
    return path


@pytest.fixture
def sample_video(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(MP4_BYTES)
    return path


def generation_json(**overrides):
    """A generation object shaped like the API's."""
    data = {
        "id": "gen-123",
        "generation_type": "video",
        "state": "queued",
        "failure_reason": None,
        "model": "ray-2",
        "created_at": "2025-01-01T00:00:00Z",
        "assets": None,
    }
    data.update(overrides)
    return data


class FakeLuma:
    """
    Canned responses keyed by (method, path), with every request recorded.

    API paths are given without the /dream-machine/v1 prefix. Unrouted
    requests fail the test.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, status=200, json_body=None, content=b"", exc=None):
        self.routes[(method, path)] = (status, json_body, content, exc)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        key = (request.method, path)
        if key not in self.routes:
            raise AssertionError(f"unexpected request: {request.method} {request.url}")
        status, json_body, content, exc = self.routes[key]
        if exc is not None:
            raise exc(request)
        if json_body is not None:
            return httpx.Response(status, content=json.dumps(json_body).encode())
        return httpx.Response(status, content=content)

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)

    def last_json(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def fake_luma():
    return FakeLuma()
