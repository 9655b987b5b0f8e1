"""Tests for the in-process metrics ledger."""

from dailycipher.ledger import MetricsLedger
from dailycipher.models import GenerationMetrics, PuzzleSource
from dailycipher.orchestrator.models import OrchestrationResult, Tier, TierRecord
from dailycipher.pools import EMERGENCY_PUZZLE


def _result(source: PuzzleSource, tiers: list[Tier], metrics: GenerationMetrics) -> OrchestrationResult:
    metrics.record_source(source)
    return OrchestrationResult(
        date="2025-07-26",
        puzzle=EMERGENCY_PUZZLE,
        source=source,
        tiers=[TierRecord(tier=tier, success=tier is tiers[-1]) for tier in tiers],
        metrics=metrics,
    )


def test_write_records_event() -> None:
    ledger = MetricsLedger()
    metrics = GenerationMetrics(attempts=3, transient_errors=3)

    event = ledger.write(_result(PuzzleSource.static_fallback, [Tier.ai, Tier.secondary_pool, Tier.static_pool], metrics))

    assert ledger.read() == [event]
    assert event.source is PuzzleSource.static_fallback
    assert event.tiers_tried == [Tier.ai, Tier.secondary_pool, Tier.static_pool]
    assert event.metrics.attempts == 3


def test_event_metrics_are_a_snapshot() -> None:
    ledger = MetricsLedger()
    metrics = GenerationMetrics()

    event = ledger.write(_result(PuzzleSource.ai, [Tier.ai], metrics))
    metrics.attempts = 99

    assert event.metrics.attempts == 0
    assert event.metrics is not metrics


def test_totals_fold_runs() -> None:
    ledger = MetricsLedger()
    ledger.write(_result(PuzzleSource.ai, [Tier.ai], GenerationMetrics(attempts=1, successes=1)))
    ledger.write(_result(PuzzleSource.ai, [Tier.ai], GenerationMetrics(attempts=2, successes=1)))
    ledger.write(_result(PuzzleSource.emergency, [Tier.ai, Tier.emergency], GenerationMetrics(attempts=9)))

    totals = ledger.totals()

    assert totals.attempts == 12
    assert totals.successes == 2
    assert totals.by_source == {"ai": 2, "emergency": 1}
    assert totals.fallback_uses == 1
    assert totals.ai_success_rate == 2 / 3


def test_empty_ledger() -> None:
    ledger = MetricsLedger()
    assert ledger.read() == []
    assert ledger.totals().ai_success_rate == 0.0
