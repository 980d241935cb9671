"""JSON envelopes for CLI results: success data on stdout, errors on stderr."""

from __future__ import annotations

import json
from typing import Any, NoReturn

import typer

from dreamgen.errors import DreamGenError


def write_success(data: dict[str, Any]) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False))


def write_error(code: str, message: str) -> NoReturn:
    """Print ``{"success": false, "error": {...}}`` to stderr and exit with status 1."""
    payload = {"success": False, "error": {"code": code, "message": message}}
    typer.echo(json.dumps(payload, ensure_ascii=False), err=True)
    raise typer.Exit(1)


def fail(error: DreamGenError) -> NoReturn:
    write_error(**error.to_dict())
