"""Pydantic models for the AI content requester."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from dailycipher.models import PuzzleSequence

from .prompts import PromptVariant


class AttemptStage(str, Enum):
    """Where in the request pipeline an attempt ended."""

    gateway = "gateway"
    extraction = "extraction"
    validation = "validation"
    complete = "complete"


class AttemptRecord(BaseModel):
    """An immutable snapshot of a single generation attempt."""

    attempt: int = Field(ge=1)
    variant: PromptVariant
    stage: AttemptStage
    success: bool
    error: str | None = None
    extraction_strategy: str | None = None
    healed_fields: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class GenerationOutcome(BaseModel):
    """Final result of the AI tier: a validated puzzle or the reason there is none."""

    success: bool
    puzzle: PuzzleSequence | None = None
    attempts: list[AttemptRecord] = Field(default_factory=list)
    error: str | None = None
    fatal: bool = Field(default=False, description="True when a credential error aborted the loop")
