"""Dream Machine generation client: one API call per operation, no polling or retries."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx

from dreamgen.constants import DEFAULT_TIMEOUT, DOWNLOAD_TIMEOUT, LUMA_API_BASE
from dreamgen.decoder import decode_generation, decode_list
from dreamgen.download import download_asset, select_asset_url
from dreamgen.payloads import validate_pagination, validate_task_id
from dreamgen.schemas.models import Generation, ListResponse
from dreamgen.transport import HTTPTransport

logger = logging.getLogger(__name__)

# operation -> (method, path template, accepted success statuses)
OPERATIONS: dict[str, tuple[str, str, tuple[int, ...]]] = {
    "create_image": ("POST", "/generations/image", (201,)),
    "reframe_image": ("POST", "/generations/image/reframe", (201,)),
    "create_video": ("POST", "/generations/video", (201,)),
    "extend_video": ("POST", "/generations/video", (201,)),
    "modify_video": ("POST", "/generations/video/modify", (201,)),
    "upscale": ("POST", "/generations/{id}/upscale", (200, 201)),
    "add_audio": ("POST", "/generations/{id}/audio", (200, 201)),
    "status": ("GET", "/generations/{id}", (200,)),
    "list": ("GET", "/generations", (200,)),
    "delete": ("DELETE", "/generations/{id}", (200, 204)),
}


class DreamClient:
    """
    Generation-task client.

    Submission methods take a body from dreamgen.payloads. The download path is
    the only one that makes two calls: a status fetch, then an unauthenticated
    asset fetch.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = LUMA_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        download_timeout: float = DOWNLOAD_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        self._http = HTTPTransport(api_key, base_url=base_url, timeout=timeout, transport=transport)
        self._download_timeout = download_timeout
        self._transport = transport

    def _call(
        self,
        operation: str,
        task_id: str | None = None,
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        method, template, expected = OPERATIONS[operation]
        path = template
        if "{id}" in template:
            path = template.replace("{id}", quote(validate_task_id(task_id), safe=""))
        logger.info("Calling %s (%s %s)", operation, method, path)
        return self._http.request_expecting(method, path, expected, body=body, params=params)

    def _submit(self, operation: str, body: dict[str, Any], task_id: str | None = None) -> Generation:
        response = self._call(operation, task_id=task_id, body=body)
        return decode_generation(response.content)

    def create_image(self, body: dict[str, Any]) -> Generation:
        return self._submit("create_image", body)

    def reframe_image(self, body: dict[str, Any]) -> Generation:
        return self._submit("reframe_image", body)

    def create_video(self, body: dict[str, Any]) -> Generation:
        return self._submit("create_video", body)

    def extend_video(self, body: dict[str, Any]) -> Generation:
        return self._submit("extend_video", body)

    def modify_video(self, body: dict[str, Any]) -> Generation:
        return self._submit("modify_video", body)

    def upscale(self, task_id: str, body: dict[str, Any]) -> Generation:
        return self._submit("upscale", body, task_id=task_id)

    def add_audio(self, task_id: str, body: dict[str, Any]) -> Generation:
        return self._submit("add_audio", body, task_id=task_id)

    def get_generation(self, task_id: str) -> Generation:
        return decode_generation(self._call("status", task_id=task_id).content)

    def list_generations(self, limit: int = 10, offset: int = 0) -> ListResponse:
        limit, offset = validate_pagination(limit, offset)
        response = self._call("list", params={"limit": limit, "offset": offset})
        return decode_list(response.content)

    def delete_generation(self, task_id: str) -> None:
        self._call("delete", task_id=task_id)

    def download(self, task_id: str, output: str | Path, kind: str | None = None) -> Path:
        """Fetch status once, then stream the completed asset to ``output``."""
        generation = self.get_generation(task_id)
        url = select_asset_url(generation, kind)
        return download_asset(url, output, timeout=self._download_timeout, transport=self._transport)
