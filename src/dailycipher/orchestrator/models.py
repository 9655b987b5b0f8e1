"""Pydantic models for the fallback orchestrator."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from dailycipher.models import GenerationMetrics, PuzzleSequence, PuzzleSource


class Tier(str, Enum):
    """Fallback tiers, in the order they are tried."""

    ai = "ai"
    secondary_pool = "secondary_pool"
    static_pool = "static_pool"
    emergency = "emergency"


class TierRecord(BaseModel):
    """Outcome of one tier during an orchestrator run."""

    tier: Tier
    success: bool
    error: str | None = None


class OrchestrationResult(BaseModel):
    """The final aggregated outcome of one orchestrator invocation."""

    date: str
    puzzle: PuzzleSequence
    source: PuzzleSource
    tiers: list[TierRecord] = Field(
        default_factory=list,
        description="Every tier tried, in order, ending with the one that succeeded",
    )
    metrics: GenerationMetrics
