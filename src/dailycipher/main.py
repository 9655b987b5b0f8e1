from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from dailycipher import __version__
from dailycipher.config import GeneratorSettings
from dailycipher.errors import DuplicateDateError
from dailycipher.ledger import MetricsLedger
from dailycipher.models import GenerationMetrics, PuzzleSource
from dailycipher.orchestrator.models import TierRecord
from dailycipher.orchestrator.service import FallbackOrchestrator
from dailycipher.store import CompletionRecord, InMemoryPuzzleStore, PuzzleStore

_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class GenerateRequest(BaseModel):
    """Request body for the /generate endpoint."""

    date: str = Field(pattern=_DATE_PATTERN, description="Target date (YYYY-MM-DD)")


class GenerateResponse(BaseModel):
    """Stored puzzle for the requested date and whether this call created it."""

    date: str
    created: bool
    source: PuzzleSource | None = None
    tiers: list[TierRecord] = Field(default_factory=list)
    puzzle: dict[str, Any]


class CompletionRequest(BaseModel):
    """Request body for recording a finished puzzle."""

    player_id: str = Field(min_length=1)
    solved: bool


class MetricsResponse(BaseModel):
    runs: int
    ai_success_rate: float
    totals: GenerationMetrics


def create_app(
    store: PuzzleStore | None = None,
    orchestrator: FallbackOrchestrator | None = None,
    ledger: MetricsLedger | None = None,
) -> FastAPI:
    """Build the facade around a store, an orchestrator and a metrics ledger."""
    store = store if store is not None else InMemoryPuzzleStore()
    if orchestrator is None:
        orchestrator = FallbackOrchestrator.from_settings(GeneratorSettings.from_env(), store)
    ledger = ledger if ledger is not None else MetricsLedger()

    app = FastAPI(title="Daily Cipher", version=__version__)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "service": "dailycipher",
            "version": __version__,
        }

    @app.get("/puzzle/{date_str}")
    async def get_puzzle(date_str: str) -> dict[str, Any]:
        """Return the stored puzzle for *date_str*, or 404."""
        record = store.get(date_str)
        if record is None:
            raise HTTPException(status_code=404, detail=f"No puzzle stored for {date_str}")
        return record

    @app.post("/generate")
    def generate(req: GenerateRequest) -> GenerateResponse:
        """
        Generate and store the puzzle for a date.

        Idempotent: an existing row is returned unchanged with ``created=False``.
        Runs in FastAPI's threadpool since generation blocks on network and backoff.
        """
        existing = store.get(req.date)
        if existing is not None:
            return GenerateResponse(date=req.date, created=False, puzzle=existing)

        result = orchestrator.generate(req.date, GenerationMetrics())
        ledger.write(result)
        record = result.puzzle.to_record()
        try:
            store.append(req.date, record)
        except DuplicateDateError:
            # A concurrent request stored this date first; serve its row.
            stored = store.get(req.date)
            if stored is None:
                raise
            return GenerateResponse(date=req.date, created=False, puzzle=stored)
        return GenerateResponse(
            date=req.date,
            created=True,
            source=result.source,
            tiers=result.tiers,
            puzzle=record,
        )

    @app.post("/puzzle/{date_str}/completion")
    async def record_completion(date_str: str, req: CompletionRequest) -> CompletionRecord:
        if not store.exists(date_str):
            raise HTTPException(status_code=404, detail=f"No puzzle stored for {date_str}")
        return store.record_completion(date_str, req.player_id, req.solved)

    @app.get("/puzzle/{date_str}/completions")
    async def list_completions(date_str: str) -> list[CompletionRecord]:
        if not store.exists(date_str):
            raise HTTPException(status_code=404, detail=f"No puzzle stored for {date_str}")
        return store.get_completions(date_str)

    @app.get("/metrics")
    async def read_metrics() -> MetricsResponse:
        totals = ledger.totals()
        return MetricsResponse(
            runs=len(ledger.read()),
            ai_success_rate=totals.ai_success_rate,
            totals=totals,
        )

    return app


app = create_app()
