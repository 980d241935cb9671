"""Request bodies for each Dream Machine operation.

Each builder validates its parameters against the fixed value sets, resolves
media references, and returns a JSON-serialisable dict. Optional fields that
were not supplied are left out of the body entirely.
"""

from __future__ import annotations

from typing import Any

from dreamgen.constants import (
    ASPECT_RATIOS,
    IMAGE_FORMATS,
    IMAGE_MODELS,
    LIST_LIMIT_MAX,
    LIST_LIMIT_MIN,
    MODIFY_MODES,
    VIDEO_DURATIONS,
    VIDEO_MODELS,
    VIDEO_RESOLUTIONS,
)
from dreamgen.errors import ValidationError
from dreamgen.media import check_media_exists, resolve_media


def _require(value: str | None, name: str, hint: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required{hint}", code=f"missing_{name}")
    return value


def _require_choice(value: str | None, allowed: frozenset[str], name: str, message: str) -> str:
    _require(value, name, "")
    if value not in allowed:
        raise ValidationError(message, code=f"invalid_{name}")
    return value


def _check_model(model: str | None, allowed: frozenset[str]) -> str:
    return _require_choice(model, allowed, "model", f"model must be {' or '.join(sorted(allowed))}")


def _check_ratio(ratio: str | None) -> str:
    return _require_choice(
        ratio, ASPECT_RATIOS, "ratio", "ratio must be 1:1, 16:9, 9:16, 4:3, 3:4, 21:9, or 9:21"
    )


def _check_format(fmt: str | None) -> str:
    return _require_choice(fmt, IMAGE_FORMATS, "format", "format must be jpg or png")


def _check_resolution(resolution: str | None) -> str:
    return _require_choice(
        resolution, VIDEO_RESOLUTIONS, "resolution", "resolution must be 540p, 720p, 1080p, or 4k"
    )


def validate_task_id(task_id: str | None) -> str:
    return _require(task_id, "task_id", "").strip()


def validate_pagination(limit: int, offset: int) -> tuple[int, int]:
    if limit < LIST_LIMIT_MIN or limit > LIST_LIMIT_MAX:
        raise ValidationError(
            f"limit must be between {LIST_LIMIT_MIN} and {LIST_LIMIT_MAX}", code="invalid_limit"
        )
    if offset < 0:
        raise ValidationError("offset must be non-negative", code="invalid_offset")
    return limit, offset


def build_image_create(
    prompt: str | None,
    model: str | None = "photon-1",
    aspect_ratio: str | None = "16:9",
    format: str | None = "jpg",
    image_ref: str | None = None,
    style_ref: str | None = None,
    modify_ref: str | None = None,
) -> dict[str, Any]:
    """Body for POST /generations/image."""
    _require(prompt, "prompt", "")
    _check_model(model, IMAGE_MODELS)
    _check_ratio(aspect_ratio)
    _check_format(format)
    # Existence is checked for all references before any file is read.
    if image_ref:
        check_media_exists(image_ref, "image", "image reference")
    if style_ref:
        check_media_exists(style_ref, "image", "style reference")
    if modify_ref:
        check_media_exists(modify_ref, "image", "modify reference")

    body: dict[str, Any] = {
        "generation_type": "image",
        "model": model,
        "prompt": prompt,
        "aspect_ratio": aspect_ratio,
        "format": format,
    }
    if image_ref:
        body["image_ref"] = [{"url": resolve_media(image_ref, "image")}]
    if style_ref:
        body["style_ref"] = [{"url": resolve_media(style_ref, "image")}]
    if modify_ref:
        body["modify_image_ref"] = {"url": resolve_media(modify_ref, "image")}
    return body


def build_image_reframe(
    image: str | None,
    model: str | None = "photon-1",
    aspect_ratio: str | None = "16:9",
    format: str | None = "jpg",
    prompt: str | None = None,
) -> dict[str, Any]:
    """Body for POST /generations/image/reframe."""
    _require(image, "image", " (--image)")
    check_media_exists(image, "image")
    _check_model(model, IMAGE_MODELS)
    _check_ratio(aspect_ratio)
    _check_format(format)

    body: dict[str, Any] = {
        "generation_type": "reframe_image",
        "model": model,
        "aspect_ratio": aspect_ratio,
        "format": format,
        "media": {"url": resolve_media(image, "image")},
    }
    if prompt:
        body["prompt"] = prompt
    return body


def build_video_create(
    prompt: str | None = None,
    model: str | None = "ray-2",
    aspect_ratio: str | None = "16:9",
    duration: str | None = "5s",
    resolution: str | None = None,
    loop: bool = False,
    image: str | None = None,
    end_frame: str | None = None,
) -> dict[str, Any]:
    """
    Body for POST /generations/video (text-to-video or image-to-video).

    ``image`` and ``end_frame`` become the ``frame0``/``frame1`` keyframes.
    """
    _check_model(model, VIDEO_MODELS)
    _check_ratio(aspect_ratio)
    _require_choice(duration, VIDEO_DURATIONS, "duration", "duration must be 5s or 9s")
    if resolution:
        _check_resolution(resolution)

    keyframes: dict[str, dict[str, str]] = {}
    if image:
        check_media_exists(image, "image", "start frame image")
        keyframes["frame0"] = {"type": "image", "url": resolve_media(image, "image")}
    if end_frame:
        check_media_exists(end_frame, "image", "end frame image")
        keyframes["frame1"] = {"type": "image", "url": resolve_media(end_frame, "image")}

    body: dict[str, Any] = {
        "model": model,
        "aspect_ratio": aspect_ratio,
        "duration": duration,
    }
    if prompt:
        body["prompt"] = prompt
    if loop:
        body["loop"] = True
    if resolution:
        body["resolution"] = resolution
    if keyframes:
        body["keyframes"] = keyframes
    return body


def build_video_extend(
    task_id: str | None,
    model: str | None = "ray-2",
    aspect_ratio: str | None = "16:9",
    prompt: str | None = None,
    reverse: bool = False,
) -> dict[str, Any]:
    """Body for extending an existing generation; reverse places it at frame1 (prepend)."""
    task_id = validate_task_id(task_id)
    _check_model(model, VIDEO_MODELS)
    _check_ratio(aspect_ratio)

    frame_key = "frame1" if reverse else "frame0"
    body: dict[str, Any] = {
        "model": model,
        "aspect_ratio": aspect_ratio,
        "keyframes": {frame_key: {"type": "generation", "id": task_id}},
    }
    if prompt:
        body["prompt"] = prompt
    return body


def build_video_modify(
    video: str | None,
    mode: str | None,
    model: str | None = "ray-2",
    prompt: str | None = None,
    first_frame: str | None = None,
) -> dict[str, Any]:
    """Body for POST /generations/video/modify."""
    _require(video, "video", " (--video)")
    _require(mode, "mode", " (--mode)")
    if mode not in MODIFY_MODES:
        raise ValidationError(
            "mode must be adhere_1-3, flex_1-3, or reimagine_1-3", code="invalid_mode"
        )
    _check_model(model, VIDEO_MODELS)
    check_media_exists(video, "video")
    if first_frame:
        check_media_exists(first_frame, "image", "first frame image")

    body: dict[str, Any] = {
        "generation_type": "modify_video",
        "model": model,
        "mode": mode,
        "media": {"url": resolve_media(video, "video")},
    }
    if prompt:
        body["prompt"] = prompt
    if first_frame:
        body["first_frame"] = {"url": resolve_media(first_frame, "image")}
    return body


def build_upscale(resolution: str | None = "1080p") -> dict[str, Any]:
    """Body for POST /generations/{id}/upscale."""
    _check_resolution(resolution)
    return {"generation_type": "upscale_video", "resolution": resolution}


def build_add_audio(prompt: str | None = None, negative_prompt: str | None = None) -> dict[str, Any]:
    """Body for POST /generations/{id}/audio."""
    body: dict[str, Any] = {"generation_type": "add_audio"}
    if prompt:
        body["prompt"] = prompt
    if negative_prompt:
        body["negative_prompt"] = negative_prompt
    return body
