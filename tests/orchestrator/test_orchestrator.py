"""Tier sequencing tests for the fallback orchestrator."""

from __future__ import annotations

from datetime import date
from typing import Any
from unittest.mock import Mock

from dailycipher.cipher.engine import CipherType, encode
from dailycipher.config import GeneratorSettings
from dailycipher.generator.models import GenerationOutcome
from dailycipher.generator.service import ContentRequester
from dailycipher.models import GenerationMetrics, PuzzleSequence, PuzzleSource
from dailycipher.orchestrator.models import OrchestrationResult, Tier
from dailycipher.orchestrator.service import FallbackOrchestrator
from dailycipher.pools import STATIC_POOL
from dailycipher.store import InMemoryPuzzleStore

DATE = "2025-07-26"


def _puzzle(p1: str = "PIANO", p2: str = "MOZART", source: PuzzleSource = PuzzleSource.ai) -> PuzzleSequence:
    cipher = CipherType.caesar_3
    return PuzzleSequence(
        cipherType=cipher,
        p1Answer=p1,
        p1EncryptedWord=encode(p1, cipher),
        p1Hint1="Letters moved.",
        p1Hint2="Caesar used it.",
        p1Hint3="Shift by three.",
        p2Question="Which composer wrote many piano concertos?",
        p2Hint1="Austrian.",
        p2Hint2="Amadeus.",
        p2Hint3="Magic Flute.",
        p2Answer=p2,
        p3Answer=encode(p2, cipher),
        p3Hint="Same cipher again.",
        category="Music",
        source=source,
    )


def _pool_record(p1: str, p2: str) -> dict[str, Any]:
    record = _puzzle(p1, p2).to_record()
    record.pop("source")
    record.pop("date")
    return record


def _requester(outcome: GenerationOutcome | Exception) -> Mock:
    requester = Mock(spec=ContentRequester)
    if isinstance(outcome, Exception):
        requester.request_puzzle.side_effect = outcome
    else:
        requester.request_puzzle.return_value = outcome
    return requester


def _failed_ai() -> Mock:
    return _requester(GenerationOutcome(success=False, error="AI generation exhausted: boom"))


def _assert_invariants(result: OrchestrationResult) -> None:
    puzzle = result.puzzle
    assert puzzle.p1_answer.upper() != puzzle.p2_answer.upper()
    assert encode(puzzle.p1_answer, puzzle.cipher_type) == puzzle.p1_encrypted_word
    assert encode(puzzle.p2_answer, puzzle.cipher_type) == puzzle.p3_answer
    assert puzzle.date == result.date


class TestFallbackOrchestrator:
    def test_ai_tier_success(self) -> None:
        store = InMemoryPuzzleStore()
        requester = _requester(GenerationOutcome(success=True, puzzle=_puzzle()))
        orchestrator = FallbackOrchestrator(store=store, requester=requester)
        metrics = GenerationMetrics()

        result = orchestrator.generate(DATE, metrics)

        assert result.source is PuzzleSource.ai
        assert [record.tier for record in result.tiers] == [Tier.ai]
        assert result.metrics is metrics
        assert metrics.by_source == {"ai": 1}
        assert metrics.fallback_uses == 0
        _assert_invariants(result)

    def test_exclusions_are_read_once_and_passed_to_ai(self) -> None:
        store = Mock(wraps=InMemoryPuzzleStore())
        store.get_recent_answers.return_value = {"google"}
        requester = _requester(GenerationOutcome(success=True, puzzle=_puzzle()))

        FallbackOrchestrator(store=store, requester=requester, exclusion_days=14).generate(DATE)

        store.get_recent_answers.assert_called_once_with(14)
        args = requester.request_puzzle.call_args.args
        assert args[0] == DATE
        assert args[1] == frozenset({"GOOGLE"})

    def test_falls_back_to_secondary_pool(self) -> None:
        pool = [_pool_record("TIGER", "WOODS"), _pool_record("APPLE", "NEWTON")]
        store = InMemoryPuzzleStore(fallback_pool=pool)
        orchestrator = FallbackOrchestrator(store=store, requester=_failed_ai())
        metrics = GenerationMetrics()

        result = orchestrator.generate(DATE, metrics)

        assert result.source is PuzzleSource.pool_fallback
        assert [record.tier for record in result.tiers] == [Tier.ai, Tier.secondary_pool]
        assert result.tiers[0].success is False
        assert result.tiers[0].error == "AI generation exhausted: boom"
        assert metrics.fallback_uses == 1
        _assert_invariants(result)

    def test_secondary_pool_heals_bad_image(self) -> None:
        record = _pool_record("TIGER", "WOODS")
        record["p3Answer"] = "WRONG"
        store = InMemoryPuzzleStore(fallback_pool=[record])
        metrics = GenerationMetrics()

        result = FallbackOrchestrator(store=store).generate(DATE, metrics)

        assert result.source is PuzzleSource.pool_fallback
        assert result.puzzle.p3_answer == encode("WOODS", CipherType.caesar_3)
        assert metrics.heals == 1

    def test_secondary_pool_respects_exclusions(self) -> None:
        pool = [_pool_record("TIGER", "WOODS"), _pool_record("APPLE", "NEWTON")]
        store = InMemoryPuzzleStore(fallback_pool=pool, today=date(2025, 7, 26))
        store.append("2025-07-20", _pool_record("TIGER", "STRIPES"))

        result = FallbackOrchestrator(store=store).generate(DATE)

        assert result.source is PuzzleSource.pool_fallback
        assert result.puzzle.p1_answer == "APPLE"

    def test_empty_secondary_pool_uses_static_pool(self) -> None:
        store = InMemoryPuzzleStore()
        metrics = GenerationMetrics()

        result = FallbackOrchestrator(store=store, requester=_failed_ai()).generate(DATE, metrics)

        assert result.source is PuzzleSource.static_fallback
        assert [record.tier for record in result.tiers] == [Tier.ai, Tier.secondary_pool, Tier.static_pool]
        assert result.tiers[1].error == "pool-fallback pool is empty."
        expected = STATIC_POOL[274340862 % len(STATIC_POOL)]
        assert result.puzzle.p1_answer == expected["p1Answer"]
        _assert_invariants(result)

    def test_ai_disabled_skips_to_pools(self) -> None:
        result = FallbackOrchestrator(store=InMemoryPuzzleStore()).generate(DATE)
        assert result.tiers[0].tier is Tier.ai
        assert result.tiers[0].error == "AI generation is disabled."
        assert result.source is PuzzleSource.static_fallback

    def test_all_tiers_fail_returns_emergency(self) -> None:
        store = Mock(spec=InMemoryPuzzleStore)
        store.get_recent_answers.side_effect = RuntimeError("store offline")
        store.get_fallback_pool.side_effect = RuntimeError("store offline")
        requester = _requester(RuntimeError("network down"))
        orchestrator = FallbackOrchestrator(store=store, requester=requester, static_pool=())
        metrics = GenerationMetrics()

        result = orchestrator.generate(DATE, metrics)

        assert result.source is PuzzleSource.emergency
        assert [record.tier for record in result.tiers] == [
            Tier.ai,
            Tier.secondary_pool,
            Tier.static_pool,
            Tier.emergency,
        ]
        assert "network down" in (result.tiers[0].error or "")
        assert "store offline" in (result.tiers[1].error or "")
        assert metrics.by_source == {"emergency": 1}
        _assert_invariants(result)

    def test_emergency_ignores_exclusions(self) -> None:
        store = InMemoryPuzzleStore(today=date(2025, 7, 26))
        store.append("2025-07-25", _pool_record("HELLO", "WORLD"))
        orchestrator = FallbackOrchestrator(store=store, static_pool=())

        result = orchestrator.generate(DATE)

        assert result.source is PuzzleSource.emergency
        assert result.puzzle.p1_answer == "HELLO"

    def test_excluded_unfiltered_pool_pick_advances_tier(self) -> None:
        pool = [_pool_record("TIGER", "WOODS")]
        store = InMemoryPuzzleStore(fallback_pool=pool, today=date(2025, 7, 26))
        store.append("2025-07-25", _pool_record("TIGER", "STRIPES"))

        result = FallbackOrchestrator(store=store).generate(DATE)

        assert result.tiers[1].tier is Tier.secondary_pool
        assert result.tiers[1].success is False
        assert result.source is PuzzleSource.static_fallback

    def test_metrics_created_when_not_supplied(self) -> None:
        first = FallbackOrchestrator(store=InMemoryPuzzleStore()).generate(DATE)
        second = FallbackOrchestrator(store=InMemoryPuzzleStore()).generate(DATE)
        assert first.metrics is not second.metrics
        assert first.metrics.by_source == {"static-fallback": 1}
        assert second.metrics.by_source == {"static-fallback": 1}

    def test_repeated_runs_pick_the_same_fallback(self) -> None:
        results = [FallbackOrchestrator(store=InMemoryPuzzleStore()).generate(DATE) for _ in range(3)]
        assert len({result.puzzle.p1_answer for result in results}) == 1


def test_from_settings_without_ai() -> None:
    orchestrator = FallbackOrchestrator.from_settings(
        GeneratorSettings(ai_enabled=False),
        InMemoryPuzzleStore(),
    )
    result = orchestrator.generate(DATE)
    assert result.source is PuzzleSource.static_fallback


def test_from_settings_wires_requester() -> None:
    settings = GeneratorSettings(model_name="test-model", max_attempts=2, exclusion_days=7)
    orchestrator = FallbackOrchestrator.from_settings(settings, InMemoryPuzzleStore())
    assert isinstance(orchestrator._requester, ContentRequester)
    assert orchestrator._requester._client.model_name == "test-model"
    assert orchestrator._requester._max_attempts == 2
    assert orchestrator._exclusion_days == 7
