"""In-process ledger of generation runs for monitoring fallback rates."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from dailycipher.models import GenerationMetrics, PuzzleSource
from dailycipher.orchestrator.models import OrchestrationResult, Tier


class GenerationEvent(BaseModel):
    """Telemetry written for every orchestrator run."""

    date: str
    source: PuzzleSource
    tiers_tried: list[Tier]
    metrics: GenerationMetrics
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MetricsLedger:
    """
    List-backed event store owned by whoever wires the orchestrator.
    Each run's metrics stay separate; ``totals`` folds them on demand.
    """

    def __init__(self) -> None:
        self._events: list[GenerationEvent] = []

    def write(self, result: OrchestrationResult) -> GenerationEvent:
        event = GenerationEvent(
            date=result.date,
            source=result.source,
            tiers_tried=[record.tier for record in result.tiers],
            metrics=result.metrics.model_copy(deep=True),
        )
        self._events.append(event)
        return event

    def read(self) -> list[GenerationEvent]:
        """Return all recorded events, oldest first."""
        return list(self._events)

    def totals(self) -> GenerationMetrics:
        total = GenerationMetrics()
        for event in self._events:
            total.merge(event.metrics)
        return total
