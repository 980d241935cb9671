"""HTTP transport for the Dream Machine API and classification of its failures."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from dreamgen.constants import DEFAULT_TIMEOUT, LUMA_API_BASE
from dreamgen.errors import (
    APIError,
    ConnectionFailedError,
    NetworkError,
    RequestTimeoutError,
)

logger = logging.getLogger(__name__)

_CONNECTION_MARKERS = (
    "connection",
    "refused",
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo",
    "name resolution",
)


def classify_transport_error(exc: Exception) -> NetworkError:
    """
    Map a transport failure to timeout / connection_error / network_error.

    Classification reads the failure description only, so it works the same
    for any underlying transport.
    """
    description = str(exc) or type(exc).__name__
    lowered = description.lower()
    if "timeout" in lowered or "timed out" in lowered:
        return RequestTimeoutError("request timed out")
    if any(marker in lowered for marker in _CONNECTION_MARKERS):
        return ConnectionFailedError("cannot connect to Luma API")
    return NetworkError(description)


def extract_detail(body: bytes | str) -> str:
    """The ``detail`` field of a JSON error body, else the raw body text."""
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    try:
        data = json.loads(text)
    except ValueError:
        return text
    if isinstance(data, dict):
        detail = data.get("detail")
        if isinstance(detail, str) and detail:
            return detail
        if detail:
            return json.dumps(detail)
    return text


def classify_api_error(status_code: int, body: bytes | str) -> APIError:
    """
    Map a non-success HTTP status to exactly one API error kind.

    401, 429 and 5xx use fixed messages regardless of the body; the others
    carry the server's detail. Unmapped codes become api_error.
    """
    msg = extract_detail(body)
    if status_code == 400:
        return APIError(msg, code="invalid_request", status_code=status_code)
    if status_code == 401:
        return APIError("API key is invalid", code="invalid_api_key", status_code=status_code)
    if status_code == 403:
        return APIError(msg, code="forbidden", status_code=status_code)
    if status_code == 404:
        return APIError(msg, code="not_found", status_code=status_code)
    if status_code == 429:
        return APIError("Too many requests", code="rate_limit", status_code=status_code)
    if status_code in (500, 502, 503):
        return APIError("Luma API server error", code="server_error", status_code=status_code)
    return APIError(
        f"API error: {status_code} - {msg}", code="api_error", status_code=status_code
    )


class HTTPTransport:
    """
    Sends one authenticated request per call. No retries.

    ``transport`` is passed through to httpx (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = LUMA_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self, has_body: bool) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    def request(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Execute the request and return the fully read response, whatever its status."""
        url = f"{self._base_url}{path}"
        content = json.dumps(body).encode("utf-8") if body is not None else None
        logger.debug("%s %s", method, url)
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.request(
                    method,
                    url,
                    content=content,
                    params=params,
                    headers=self._headers(body is not None),
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("Transport failure for %s %s: %s", method, url, e)
            raise classify_transport_error(e) from e
        logger.debug("%s %s -> %d", method, url, response.status_code)
        return response

    def request_expecting(
        self,
        method: str,
        path: str,
        expected: tuple[int, ...],
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Like request(), but raise the classified APIError unless the status is expected."""
        response = self.request(method, path, body=body, params=params)
        if response.status_code not in expected:
            raise classify_api_error(response.status_code, response.content)
        return response
