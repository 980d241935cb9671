"""Decode API JSON into Generation / ListResponse models."""

from __future__ import annotations

import json
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from dreamgen.errors import DecodeError
from dreamgen.schemas.models import Generation, ListResponse

T = TypeVar("T", bound=BaseModel)


def _decode(content: bytes | str, schema: type[T]) -> T:
    try:
        data: Any = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"invalid JSON in response: {e}") from e
    if not isinstance(data, dict):
        raise DecodeError(f"expected a JSON object, got {type(data).__name__}")
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise DecodeError(f"unexpected response shape: {e}") from e


def decode_generation(content: bytes | str) -> Generation:
    """Parse a generation object. Absent optional fields become empty values."""
    return _decode(content, Generation)


def decode_list(content: bytes | str) -> ListResponse:
    """Parse a paginated list; generation order is preserved."""
    return _decode(content, ListResponse)


def encode_generation(generation: Generation) -> str:
    """JSON for a generation, omitting assets when there are none."""
    return generation.model_dump_json(exclude_none=True)
