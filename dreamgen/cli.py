"""CLI entry-point: Luma Dream Machine image and video generations."""

import logging
import sys
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from dreamgen.client import DreamClient
from dreamgen.config import (
    get_api_key,
    get_config_value,
    get_settings,
    load_config_file,
    mask_secret,
    set_config_value,
    unset_config_value,
)
from dreamgen.download import validate_output_path
from dreamgen.errors import DreamGenError
from dreamgen.output import fail, write_success
from dreamgen.payloads import (
    build_add_audio,
    build_image_create,
    build_image_reframe,
    build_upscale,
    build_video_create,
    build_video_extend,
    build_video_modify,
    validate_pagination,
    validate_task_id,
)
from dreamgen.prompt import read_prompt
from dreamgen.schemas.models import Generation

app = typer.Typer(help="Luma Dream Machine client: create, inspect, and download image and video generations.")
image_app = typer.Typer(help="Generate and manipulate images using Luma Photon models.")
video_app = typer.Typer(help="Generate and manage videos using Luma Dream Machine.")
config_app = typer.Typer(help="Manage the stored API key.")
app.add_typer(image_app, name="image")
app.add_typer(video_app, name="video")
app.add_typer(config_app, name="config")

MODEL_HELP_IMAGE = "Model (photon-1, photon-flash-1)"
MODEL_HELP_VIDEO = "Model (ray-2, ray-flash-2)"
RATIO_HELP = "Aspect ratio (1:1, 16:9, 9:16, 4:3, 3:4, 21:9, 9:21)"
PROMPT_FILE_HELP = "Read prompt from file"


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Log requests to stderr"),
):
    """Luma Dream Machine client."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


def _build_client() -> DreamClient:
    settings = get_settings()
    return DreamClient(
        get_api_key(settings),
        base_url=settings.dreamgen_base_url,
        timeout=settings.dreamgen_timeout,
        download_timeout=settings.dreamgen_download_timeout,
    )


def _submitted(gen: Generation, include_model: bool = True) -> dict[str, Any]:
    result: dict[str, Any] = {"task_id": gen.id, "state": gen.state}
    if include_model:
        result["model"] = gen.model
    result["created_at"] = gen.created_at
    return result


def _status(task_id: str, verbose: bool, asset_keys: tuple[str, ...]) -> None:
    try:
        validate_task_id(task_id)
        gen = _build_client().get_generation(task_id)
    except DreamGenError as e:
        fail(e)
    result = gen.summary()
    if verbose and gen.assets is not None:
        assets = {k: v for k, v in gen.assets.non_empty().items() if k in asset_keys}
        if assets:
            result["assets"] = assets
    write_success(result)


def _download(task_id: str, output: str | None, kind: str) -> None:
    try:
        validate_task_id(task_id)
        path = validate_output_path(output, kind)
        written = _build_client().download(task_id, path, kind=kind)
    except DreamGenError as e:
        fail(e)
    write_success({"success": True, "task_id": task_id, "file": str(written)})


def _delete(task_id: str) -> None:
    try:
        validate_task_id(task_id)
        _build_client().delete_generation(task_id)
    except DreamGenError as e:
        fail(e)
    write_success({"success": True, "task_id": task_id, "deleted": True})


# ---------------------------------------------------------------------------
# image
# ---------------------------------------------------------------------------

@image_app.command("create")
def image_create(
    prompt: str | None = typer.Argument(None, help="Text prompt (or use --prompt-file / stdin)"),
    model: str = typer.Option("photon-1", "--model", "-m", help=MODEL_HELP_IMAGE),
    ratio: str = typer.Option("16:9", "--ratio", "-r", help=RATIO_HELP),
    format: str = typer.Option("jpg", "--format", help="Output format (jpg, png)"),
    image_ref: str | None = typer.Option(None, "--image-ref", help="Image reference for content guidance (URL or local file)"),
    style_ref: str | None = typer.Option(None, "--style-ref", help="Style reference (URL or local file)"),
    modify_ref: str | None = typer.Option(None, "--modify-ref", help="Image to modify (URL or local file)"),
    prompt_file: str | None = typer.Option(None, "--prompt-file", "-f", help=PROMPT_FILE_HELP),
):
    """Generate an image from a text prompt, optionally guided by reference images."""
    try:
        text = read_prompt(prompt, prompt_file, sys.stdin)
        body = build_image_create(
            text,
            model=model,
            aspect_ratio=ratio,
            format=format,
            image_ref=image_ref,
            style_ref=style_ref,
            modify_ref=modify_ref,
        )
        gen = _build_client().create_image(body)
    except DreamGenError as e:
        fail(e)
    write_success(_submitted(gen))


@image_app.command("reframe")
def image_reframe(
    prompt: str | None = typer.Argument(None, help="Optional prompt for the new content"),
    image: str | None = typer.Option(None, "--image", "-i", help="Source image (URL or local file)"),
    model: str = typer.Option("photon-1", "--model", "-m", help=MODEL_HELP_IMAGE),
    ratio: str = typer.Option("16:9", "--ratio", "-r", help="Target aspect ratio"),
    format: str = typer.Option("jpg", "--format", help="Output format (jpg, png)"),
    prompt_file: str | None = typer.Option(None, "--prompt-file", "-f", help=PROMPT_FILE_HELP),
):
    """Reframe an image to a new aspect ratio, filling in new content."""
    try:
        body = build_image_reframe(
            image,
            model=model,
            aspect_ratio=ratio,
            format=format,
            prompt=read_prompt(prompt, prompt_file),
        )
        gen = _build_client().reframe_image(body)
    except DreamGenError as e:
        fail(e)
    write_success(_submitted(gen))


@image_app.command("status")
def image_status(
    task_id: str = typer.Argument(..., help="Generation ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show full output including URLs"),
):
    """Query the status of an image generation task."""
    _status(task_id, verbose, ("image",))


@image_app.command("download")
def image_download(
    task_id: str = typer.Argument(..., help="Generation ID"),
    output: str | None = typer.Option(None, "--output", "-o", help="Output file path (.jpg or .png)"),
):
    """Download the result of a completed image generation task."""
    _download(task_id, output, "image")


@image_app.command("delete")
def image_delete(task_id: str = typer.Argument(..., help="Generation ID")):
    """Delete an image generation task."""
    _delete(task_id)


# ---------------------------------------------------------------------------
# video
# ---------------------------------------------------------------------------

@video_app.command("create")
def video_create(
    prompt: str | None = typer.Argument(None, help="Text prompt (optional for image-to-video)"),
    image: str | None = typer.Option(None, "--image", "-i", help="Start frame image (local file or URL)"),
    end_frame: str | None = typer.Option(None, "--end-frame", help="End frame image (local file or URL)"),
    model: str = typer.Option("ray-2", "--model", "-m", help=MODEL_HELP_VIDEO),
    ratio: str = typer.Option("16:9", "--ratio", "-r", help=RATIO_HELP),
    duration: str = typer.Option("5s", "--duration", "-d", help="Duration (5s, 9s)"),
    resolution: str | None = typer.Option(None, "--resolution", help="Resolution (540p, 720p, 1080p, 4k)"),
    loop: bool = typer.Option(False, "--loop", help="Create looping video"),
    prompt_file: str | None = typer.Option(None, "--prompt-file", "-f", help=PROMPT_FILE_HELP),
):
    """Create a video from text or from start/end frame images."""
    try:
        body = build_video_create(
            read_prompt(prompt, prompt_file, sys.stdin),
            model=model,
            aspect_ratio=ratio,
            duration=duration,
            resolution=resolution,
            loop=loop,
            image=image,
            end_frame=end_frame,
        )
        gen = _build_client().create_video(body)
    except DreamGenError as e:
        fail(e)
    write_success(_submitted(gen))


@video_app.command("extend")
def video_extend(
    task_id: str = typer.Argument(..., help="Generation ID to extend"),
    prompt: str | None = typer.Argument(None, help="Optional prompt"),
    reverse: bool = typer.Option(False, "--reverse", help="Use generation as end frame (prepend to video)"),
    model: str = typer.Option("ray-2", "--model", "-m", help=MODEL_HELP_VIDEO),
    ratio: str = typer.Option("16:9", "--ratio", "-r", help="Aspect ratio"),
    prompt_file: str | None = typer.Option(None, "--prompt-file", "-f", help=PROMPT_FILE_HELP),
):
    """Extend an existing video, using it as the start frame (or end frame with --reverse)."""
    try:
        body = build_video_extend(
            task_id,
            model=model,
            aspect_ratio=ratio,
            prompt=read_prompt(prompt, prompt_file),
            reverse=reverse,
        )
        gen = _build_client().extend_video(body)
    except DreamGenError as e:
        fail(e)
    write_success(_submitted(gen))


@video_app.command("modify")
def video_modify(
    prompt: str | None = typer.Argument(None, help="Optional prompt"),
    video: str | None = typer.Option(None, "--video", "-v", help="Source video (URL or local file)"),
    mode: str | None = typer.Option(None, "--mode", help="Modification mode (adhere_1-3, flex_1-3, reimagine_1-3)"),
    model: str = typer.Option("ray-2", "--model", "-m", help=MODEL_HELP_VIDEO),
    first_frame: str | None = typer.Option(None, "--first-frame", help="First frame image (URL or local file)"),
    prompt_file: str | None = typer.Option(None, "--prompt-file", "-f", help=PROMPT_FILE_HELP),
):
    """Modify a video with style transfer and prompt-based editing.

    Modes: adhere_1-3 stay close to the original motion, flex_1-3 balance
    original and new motion, reimagine_1-3 allow the most creative freedom.
    """
    try:
        body = build_video_modify(
            video,
            mode,
            model=model,
            prompt=read_prompt(prompt, prompt_file, sys.stdin),
            first_frame=first_frame,
        )
        gen = _build_client().modify_video(body)
    except DreamGenError as e:
        fail(e)
    write_success(_submitted(gen))


@video_app.command("upscale")
def video_upscale(
    task_id: str = typer.Argument(..., help="Generation ID"),
    resolution: str = typer.Option("1080p", "--resolution", help="Target resolution (540p, 720p, 1080p, 4k)"),
):
    """Upscale an existing video generation to a higher resolution."""
    try:
        validate_task_id(task_id)
        body = build_upscale(resolution)
        gen = _build_client().upscale(task_id, body)
    except DreamGenError as e:
        fail(e)
    write_success(_submitted(gen, include_model=False))


@video_app.command("audio")
def video_audio(
    task_id: str = typer.Argument(..., help="Generation ID"),
    prompt: str | None = typer.Argument(None, help="Optional audio prompt"),
    negative_prompt: str | None = typer.Option(None, "--negative-prompt", help="Negative prompt for audio generation"),
    prompt_file: str | None = typer.Option(None, "--prompt-file", "-f", help=PROMPT_FILE_HELP),
):
    """Add AI-generated audio to an existing video generation."""
    try:
        validate_task_id(task_id)
        body = build_add_audio(read_prompt(prompt, prompt_file), negative_prompt)
        gen = _build_client().add_audio(task_id, body)
    except DreamGenError as e:
        fail(e)
    write_success(_submitted(gen, include_model=False))


@video_app.command("status")
def video_status(
    task_id: str = typer.Argument(..., help="Generation ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show full output including URLs"),
):
    """Query the status of a video generation task."""
    _status(task_id, verbose, ("video", "image", "progress_video"))


@video_app.command("download")
def video_download(
    task_id: str = typer.Argument(..., help="Generation ID"),
    output: str | None = typer.Option(None, "--output", "-o", help="Output file path (.mp4)"),
):
    """Download the result of a completed video generation task."""
    _download(task_id, output, "video")


@video_app.command("delete")
def video_delete(task_id: str = typer.Argument(..., help="Generation ID")):
    """Delete a video generation task."""
    _delete(task_id)


@video_app.command("list")
def video_list(
    limit: int = typer.Option(10, "--limit", help="Number of results to return (1-100)"),
    offset: int = typer.Option(0, "--offset", help="Offset for pagination"),
):
    """List generation tasks with pagination."""
    try:
        validate_pagination(limit, offset)
        page = _build_client().list_generations(limit=limit, offset=offset)
    except DreamGenError as e:
        fail(e)
    generations = []
    for gen in page.generations:
        item: dict[str, Any] = {"task_id": gen.id, "state": gen.state, "created_at": gen.created_at}
        if gen.generation_type:
            item["generation_type"] = gen.generation_type
        if gen.model:
            item["model"] = gen.model
        if gen.failure_reason:
            item["failure_reason"] = gen.failure_reason
        generations.append(item)
    write_success({
        "generations": generations,
        "count": page.count,
        "limit": page.limit,
        "offset": page.offset,
        "has_more": page.has_more,
    })


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------

@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Key name, e.g. luma_api_key"),
    value: str = typer.Argument(..., help="Value to store"),
):
    """Store a key in the config file."""
    console = Console()
    settings = get_settings()
    try:
        config_key = set_config_value(settings, key, value)
    except DreamGenError as e:
        fail(e)
    console.print(f"[green]Saved {config_key} to {settings.config_path}[/green]")


@config_app.command("get")
def config_get(
    key: str = typer.Argument(..., help="Key name"),
    show: bool = typer.Option(False, "--show", help="Print the value unmasked"),
):
    """Print a stored key (masked unless --show)."""
    console = Console()
    try:
        value = get_config_value(get_settings(), key)
    except DreamGenError as e:
        fail(e)
    if not value:
        console.print(f"[yellow]{key} is not set[/yellow]")
        raise typer.Exit(1)
    console.print(value if show else mask_secret(value), highlight=False)


@config_app.command("unset")
def config_unset(key: str = typer.Argument(..., help="Key name")):
    """Remove a key from the config file."""
    console = Console()
    settings = get_settings()
    try:
        config_key = unset_config_value(settings, key)
    except DreamGenError as e:
        fail(e)
    console.print(f"Removed {config_key} from {settings.config_path}")


@config_app.command("list")
def config_list():
    """List stored keys with masked values."""
    console = Console()
    try:
        data = load_config_file(get_settings().config_path)
    except DreamGenError as e:
        fail(e)
    if not data:
        console.print("[yellow]No keys stored.[/yellow]")
        return
    table = Table("Key", "Value")
    for k in sorted(data):
        table.add_row(k, mask_secret(data[k]))
    console.print(table)


@config_app.command("path")
def config_path():
    """Print the config file location."""
    typer.echo(str(get_settings().config_path))


if __name__ == "__main__":
    app()
