"""Prompt sources: positional argument, prompt file, or piped stdin."""

from __future__ import annotations

from pathlib import Path
from typing import IO

from dreamgen.errors import ReadError


def read_prompt(
    text: str | None = None,
    prompt_file: str | None = None,
    stdin: IO[str] | None = None,
) -> str:
    """
    Return the first non-empty prompt from text, prompt_file, then stdin.

    stdin is only read when it is not a terminal. Returns "" when no source
    yields a prompt; callers decide whether that is an error.
    """
    if text and text.strip():
        return text.strip()
    if prompt_file:
        try:
            return Path(prompt_file).read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(f"cannot read file: {e}", code="prompt_read_error") from e
    if stdin is not None and not stdin.isatty():
        return stdin.read().strip()
    return ""
