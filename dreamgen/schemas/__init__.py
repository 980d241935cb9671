"""Pydantic models for API payloads."""

from dreamgen.schemas.models import Assets, Generation, GenerationState, ListResponse

__all__ = ["Assets", "Generation", "GenerationState", "ListResponse"]
