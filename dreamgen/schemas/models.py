"""Pydantic models for Dream Machine generations and list pages."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, field_validator


class GenerationState(str, Enum):
    """Remote job state: queued -> dreaming -> completed | failed."""

    QUEUED = "queued"
    DREAMING = "dreaming"
    COMPLETED = "completed"
    FAILED = "failed"


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


class Assets(BaseModel):
    """Output media URLs; each is empty when the API did not provide it."""

    video: str = ""
    image: str = ""
    progress_video: str = ""

    @field_validator("video", "image", "progress_video", mode="before")
    @classmethod
    def null_urls_to_empty(cls, value: Any) -> Any:
        return _none_to_empty(value)

    def non_empty(self) -> dict[str, str]:
        return {k: v for k, v in self.model_dump().items() if v}


class Generation(BaseModel):
    """
    A single asynchronous generation job as reported by the API.

    The client never changes state locally; every instance is a snapshot of
    remote state. Optional fields decode to "" (or None for assets) when absent.
    """

    id: str = ""
    generation_type: str = ""
    state: str = ""
    failure_reason: str = ""
    model: str = ""
    created_at: str = ""
    assets: Assets | None = None

    @field_validator(
        "id", "generation_type", "state", "failure_reason", "model", "created_at", mode="before"
    )
    @classmethod
    def null_strings_to_empty(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @property
    def is_completed(self) -> bool:
        return self.state == GenerationState.COMPLETED.value

    @property
    def is_failed(self) -> bool:
        return self.state == GenerationState.FAILED.value

    def summary(self) -> dict[str, Any]:
        """Status fields for CLI output; failure_reason only when present."""
        result: dict[str, Any] = {
            "task_id": self.id,
            "state": self.state,
            "generation_type": self.generation_type,
            "model": self.model,
            "created_at": self.created_at,
        }
        if self.failure_reason:
            result["failure_reason"] = self.failure_reason
        return result


class ListResponse(BaseModel):
    """One page of generations, in the order the API returned them."""

    has_more: bool = False
    count: int = 0
    limit: int = 0
    offset: int = 0
    generations: list[Generation] = []

    @field_validator("generations", mode="before")
    @classmethod
    def null_generations_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value
