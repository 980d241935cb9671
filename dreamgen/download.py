"""Fetch a completed generation's asset and write it to disk."""

from __future__ import annotations

import logging
from pathlib import Path
from time import monotonic

import httpx

from dreamgen.constants import DOWNLOAD_TIMEOUT, IMAGE_OUTPUT_EXTENSIONS, VIDEO_OUTPUT_EXTENSIONS
from dreamgen.errors import DownloadError, NoOutputError, OutputError, TaskNotReadyError, ValidationError
from dreamgen.schemas.models import Generation

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


def validate_output_path(output: str | None, kind: str) -> Path:
    """Check the destination path and its extension for an image or video download."""
    if not output:
        raise ValidationError("output file path is required (-o)", code="missing_output")
    allowed = IMAGE_OUTPUT_EXTENSIONS if kind == "image" else VIDEO_OUTPUT_EXTENSIONS
    if not output.lower().endswith(allowed):
        raise ValidationError(
            f"output file must have {', '.join(allowed)} extension", code="invalid_output"
        )
    return Path(output)


def select_asset_url(generation: Generation, kind: str | None = None) -> str:
    """
    URL of the asset to download.

    Raises TaskNotReadyError unless the generation is completed, and
    NoOutputError when it is completed without a matching asset. With no
    ``kind`` the video is preferred, then the image.
    """
    if not generation.is_completed:
        raise TaskNotReadyError(
            f"task is not ready for download. Current state: {generation.state}"
        )
    assets = generation.assets
    if assets is not None:
        if kind == "image":
            url = assets.image
        elif kind == "video":
            url = assets.video
        else:
            url = assets.video or assets.image
        if url:
            return url
    raise NoOutputError(f"task completed but no {kind or 'asset'} available")


def download_asset(
    url: str,
    output: str | Path,
    timeout: float = DOWNLOAD_TIMEOUT,
    transport: httpx.BaseTransport | None = None,
) -> Path:
    """
    Stream ``url`` into ``output`` with an unauthenticated GET.

    ``timeout`` bounds each network step and also the whole transfer.
    Parent directories are created only after the asset host answers 200.
    Returns the absolute path written. A partially written file is removed
    on failure.
    """
    output = Path(output)
    deadline = monotonic() + timeout
    written = 0
    created = False
    try:
        with httpx.Client(timeout=timeout, transport=transport, follow_redirects=True) as client:
            with client.stream("GET", url) as response:
                if response.status_code != 200:
                    raise DownloadError(
                        f"download failed with status: {response.status_code} {response.reason_phrase}"
                    )
                try:
                    output.parent.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise OutputError(f"failed to create directory: {e}") from e
                try:
                    f = open(output, "wb")
                except OSError as e:
                    raise OutputError(f"failed to create output file: {e}") from e
                created = True
                with f:
                    for chunk in response.iter_bytes(_CHUNK_SIZE):
                        try:
                            f.write(chunk)
                        except OSError as e:
                            raise OutputError(f"failed to write output file: {e}") from e
                        written += len(chunk)
                        if monotonic() > deadline:
                            raise DownloadError(f"download did not finish within {timeout:g}s")
    # InvalidURL is not an HTTPError subclass.
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        if created:
            output.unlink(missing_ok=True)
        raise DownloadError(f"failed to download: {e}") from e
    except (OutputError, DownloadError):
        if created:
            output.unlink(missing_ok=True)
        raise

    logger.info("Downloaded %d bytes to %s", written, output)
    return output.resolve()
