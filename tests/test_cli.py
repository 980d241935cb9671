"""Tests for the dreamgen CLI."""

import json

import pytest
from typer.testing import CliRunner

from conftest import generation_json
from dreamgen import cli
from dreamgen.client import DreamClient

runner = CliRunner()


def _last_json(result):
    """The final output line parsed as JSON (error envelopes go to stderr)."""
    return json.loads(result.output.strip().splitlines()[-1])


def _error(result):
    assert result.exit_code == 1, result.output
    payload = _last_json(result)
    assert payload["success"] is False
    return payload["error"]


@pytest.fixture
def api(fake_luma, monkeypatch):
    """Route CLI commands to the fake API."""
    monkeypatch.setattr(cli, "_build_client", lambda: DreamClient("test-key", transport=fake_luma.transport))
    return fake_luma


class TestImageCommands:
    def test_create(self, api):
        api.add("POST", "/generations/image", 201, generation_json(
            id="img-1", generation_type="image", model="photon-1",
        ))
        result = runner.invoke(cli.app, ["image", "create", "a red fox", "--ratio", "1:1"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {
            "task_id": "img-1",
            "state": "queued",
            "model": "photon-1",
            "created_at": "2025-01-01T00:00:00Z",
        }
        assert api.last_json()["aspect_ratio"] == "1:1"

    def test_create_reads_stdin(self, api):
        api.add("POST", "/generations/image", 201, generation_json())
        result = runner.invoke(cli.app, ["image", "create"], input="piped prompt\n")
        assert result.exit_code == 0, result.output
        assert api.last_json()["prompt"] == "piped prompt"

    def test_create_without_prompt(self, api):
        result = runner.invoke(cli.app, ["image", "create"], input="")
        assert _error(result)["code"] == "missing_prompt"
        assert api.requests == []

    def test_invalid_model_before_api_key(self):
        result = runner.invoke(cli.app, ["image", "create", "p", "-m", "photon-9"])
        assert _error(result)["code"] == "invalid_model"

    def test_missing_api_key(self):
        result = runner.invoke(cli.app, ["image", "create", "p"])
        error = _error(result)
        assert error["code"] == "missing_api_key"
        assert "dreamgen config set luma_api_key" in error["message"]

    def test_reframe_requires_image(self, api):
        result = runner.invoke(cli.app, ["image", "reframe"])
        assert _error(result)["code"] == "missing_image"

    def test_reframe(self, api, sample_image):
        api.add("POST", "/generations/image/reframe", 201, generation_json(generation_type="reframe_image"))
        result = runner.invoke(cli.app, ["image", "reframe", "-i", str(sample_image), "-r", "9:16"])
        assert result.exit_code == 0, result.output
        assert api.last_json()["media"]["url"].startswith("data:image/png;base64,")

    def test_status_verbose_shows_image(self, api):
        api.add("GET", "/generations/img-1", 200, generation_json(
            id="img-1", generation_type="image", state="completed",
            assets={"image": "https://cdn/i.jpg", "video": None},
        ))
        result = runner.invoke(cli.app, ["image", "status", "img-1", "--verbose"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["state"] == "completed"
        assert data["assets"] == {"image": "https://cdn/i.jpg"}

    def test_status_without_verbose_hides_assets(self, api):
        api.add("GET", "/generations/img-1", 200, generation_json(
            id="img-1", state="completed", assets={"image": "https://cdn/i.jpg"},
        ))
        result = runner.invoke(cli.app, ["image", "status", "img-1"])
        assert "assets" not in json.loads(result.stdout)

    def test_download(self, api, tmp_path):
        api.add("GET", "/generations/img-1", 200, generation_json(
            id="img-1", state="completed", assets={"image": "https://cdn.example.com/assets/i.png"},
        ))
        api.add("GET", "/assets/i.png", 200, content=b"pngdata")
        result = runner.invoke(cli.app, ["image", "download", "img-1", "-o", "out/pic.png"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data == {"success": True, "task_id": "img-1", "file": str((tmp_path / "out" / "pic.png").resolve())}
        assert (tmp_path / "out" / "pic.png").read_bytes() == b"pngdata"

    def test_download_output_checked_before_api_key(self):
        result = runner.invoke(cli.app, ["image", "download", "img-1"])
        assert _error(result)["code"] == "missing_output"
        result = runner.invoke(cli.app, ["image", "download", "img-1", "-o", "x.mp4"])
        assert _error(result)["code"] == "invalid_output"

    def test_download_malformed_asset_url(self, api, tmp_path):
        api.add("GET", "/generations/img-1", 200, generation_json(
            id="img-1", state="completed", assets={"image": "https://cdn.example.com/\x00i.png"},
        ))
        result = runner.invoke(cli.app, ["image", "download", "img-1", "-o", "out/pic.png"])
        assert _error(result)["code"] == "download_error"
        assert not (tmp_path / "out").exists()

    def test_download_not_ready(self, api):
        api.add("GET", "/generations/img-1", 200, generation_json(id="img-1", state="dreaming"))
        result = runner.invoke(cli.app, ["image", "download", "img-1", "-o", "x.jpg"])
        error = _error(result)
        assert error["code"] == "task_not_ready"
        assert "dreaming" in error["message"]

    def test_delete(self, api):
        api.add("DELETE", "/generations/img-1", 204)
        result = runner.invoke(cli.app, ["image", "delete", "img-1"])
        assert json.loads(result.stdout) == {"success": True, "task_id": "img-1", "deleted": True}


class TestVideoCommands:
    def test_create_with_frames(self, api, sample_image):
        api.add("POST", "/generations/video", 201, generation_json(id="vid-1"))
        result = runner.invoke(cli.app, [
            "video", "create", "a drone shot", "-i", str(sample_image),
            "--end-frame", "https://example.com/end.jpg", "-d", "9s", "--loop",
        ])
        assert result.exit_code == 0, result.output
        body = api.last_json()
        assert body["duration"] == "9s"
        assert body["loop"] is True
        assert set(body["keyframes"]) == {"frame0", "frame1"}

    def test_create_missing_start_frame(self, api, tmp_path):
        result = runner.invoke(cli.app, ["video", "create", "p", "-i", str(tmp_path / "none.png")])
        assert _error(result)["code"] == "image_not_found"

    def test_create_invalid_duration(self):
        result = runner.invoke(cli.app, ["video", "create", "p", "-d", "7s"])
        assert _error(result)["code"] == "invalid_duration"

    def test_extend_reverse(self, api):
        api.add("POST", "/generations/video", 201, generation_json(id="vid-2"))
        result = runner.invoke(cli.app, ["video", "extend", "vid-1", "continue", "--reverse"])
        assert result.exit_code == 0, result.output
        body = api.last_json()
        assert body["keyframes"] == {"frame1": {"type": "generation", "id": "vid-1"}}
        assert body["prompt"] == "continue"

    def test_modify(self, api, sample_video):
        api.add("POST", "/generations/video/modify", 201, generation_json(generation_type="modify_video"))
        result = runner.invoke(cli.app, [
            "video", "modify", "make it snow", "-v", str(sample_video), "--mode", "reimagine_2",
        ])
        assert result.exit_code == 0, result.output
        body = api.last_json()
        assert body["mode"] == "reimagine_2"
        assert body["media"]["url"].startswith("data:video/mp4;base64,")

    def test_modify_missing_mode(self, api):
        result = runner.invoke(cli.app, ["video", "modify", "p", "-v", "https://x/v.mp4"])
        assert _error(result)["code"] == "missing_mode"

    def test_upscale_omits_model(self, api):
        api.add("POST", "/generations/vid-1/upscale", 200, generation_json(id="vid-1"))
        result = runner.invoke(cli.app, ["video", "upscale", "vid-1", "--resolution", "4k"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert "model" not in data
        assert data["task_id"] == "vid-1"
        assert api.last_json()["resolution"] == "4k"

    def test_audio(self, api):
        api.add("POST", "/generations/vid-1/audio", 201, generation_json(id="vid-1"))
        result = runner.invoke(cli.app, ["video", "audio", "vid-1", "ocean waves", "--negative-prompt", "voices"])
        assert result.exit_code == 0, result.output
        assert api.last_json() == {
            "generation_type": "add_audio",
            "prompt": "ocean waves",
            "negative_prompt": "voices",
        }

    def test_status_failed_has_reason(self, api):
        api.add("GET", "/generations/vid-1", 200, generation_json(
            id="vid-1", state="failed", failure_reason="moderation",
        ))
        data = json.loads(runner.invoke(cli.app, ["video", "status", "vid-1"]).stdout)
        assert data["failure_reason"] == "moderation"
        assert data["generation_type"] == "video"

    def test_list(self, api):
        api.add("GET", "/generations", 200, {
            "has_more": True, "count": 2, "limit": 2, "offset": 0,
            "generations": [
                generation_json(id="b", model=None),
                generation_json(id="a", state="failed", failure_reason="oops"),
            ],
        })
        result = runner.invoke(cli.app, ["video", "list", "--limit", "2"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert [g["task_id"] for g in data["generations"]] == ["b", "a"]
        assert "model" not in data["generations"][0]
        assert data["generations"][1]["failure_reason"] == "oops"
        assert data["has_more"] is True
        assert (data["count"], data["limit"], data["offset"]) == (2, 2, 0)

    @pytest.mark.parametrize("args,code", [
        (["--limit", "0"], "invalid_limit"),
        (["--limit", "101"], "invalid_limit"),
        (["--offset=-1"], "invalid_offset"),
    ])
    def test_list_bounds(self, args, code):
        assert _error(runner.invoke(cli.app, ["video", "list", *args]))["code"] == code

    def test_download_requires_mp4(self):
        result = runner.invoke(cli.app, ["video", "download", "vid-1", "-o", "out.png"])
        assert _error(result)["code"] == "invalid_output"

    @pytest.mark.parametrize("status,code", [
        (401, "invalid_api_key"),
        (404, "not_found"),
        (429, "rate_limit"),
        (502, "server_error"),
    ])
    def test_api_errors_surface_as_envelope(self, api, status, code):
        api.add("GET", "/generations/vid-1", status, {"detail": "x"})
        assert _error(runner.invoke(cli.app, ["video", "status", "vid-1"]))["code"] == code


class TestConfigCommands:
    def test_set_get_unset(self, isolated_env):
        result = runner.invoke(cli.app, ["config", "set", "LUMA_API_KEY", "luma-0123456789abcdef"])
        assert result.exit_code == 0, result.output
        assert json.loads((isolated_env / "config.json").read_text()) == {"luma_api_key": "luma-0123456789abcdef"}

        masked = runner.invoke(cli.app, ["config", "get", "luma_api_key"])
        assert "luma...cdef" in masked.output
        assert "0123456789" not in masked.output

        shown = runner.invoke(cli.app, ["config", "get", "luma_api_key", "--show"])
        assert "luma-0123456789abcdef" in shown.output

        assert runner.invoke(cli.app, ["config", "unset", "luma_api_key"]).exit_code == 0
        assert runner.invoke(cli.app, ["config", "get", "luma_api_key"]).exit_code == 1

    def test_set_unknown_key(self):
        result = runner.invoke(cli.app, ["config", "set", "other_key", "v"])
        assert _error(result)["code"] == "invalid_key"

    def test_stored_key_used_by_commands(self, fake_luma, monkeypatch):
        runner.invoke(cli.app, ["config", "set", "luma_api_key", "stored-key"])
        seen = {}

        def build(api_key, **kwargs):
            seen["api_key"] = api_key
            return DreamClient(api_key, transport=fake_luma.transport)

        monkeypatch.setattr(cli, "DreamClient", build)
        fake_luma.add("DELETE", "/generations/g", 200)
        result = runner.invoke(cli.app, ["video", "delete", "g"])
        assert result.exit_code == 0, result.output
        assert seen["api_key"] == "stored-key"
        assert fake_luma.requests[-1].headers["Authorization"] == "Bearer stored-key"

    def test_list_and_path(self, isolated_env):
        assert "No keys stored" in runner.invoke(cli.app, ["config", "list"]).output
        runner.invoke(cli.app, ["config", "set", "luma_api_key", "luma-0123456789abcdef"])
        listed = runner.invoke(cli.app, ["config", "list"]).output
        assert "luma_api_key" in listed
        assert "luma...cdef" in listed
        path = runner.invoke(cli.app, ["config", "path"])
        assert path.output.strip() == str(isolated_env / "config.json")


def test_debug_flag_accepted(api):
    api.add("GET", "/generations/g", 200, generation_json(id="g"))
    result = runner.invoke(cli.app, ["--debug", "video", "status", "g"])
    assert result.exit_code == 0, result.output
    assert _last_json(result)["task_id"] == "g"
