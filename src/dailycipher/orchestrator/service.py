"""FallbackOrchestrator - the tiered generation entry point."""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping, Sequence
from typing import Any

from dailycipher.config import GeneratorSettings
from dailycipher.generator.gateway import LiteLLMClient
from dailycipher.generator.service import ContentRequester
from dailycipher.generator.validator import validate_record
from dailycipher.models import GenerationMetrics, PuzzleSequence, PuzzleSource
from dailycipher.pools import EMERGENCY_PUZZLE, STATIC_POOL, select_from_pool
from dailycipher.selector import date_seed, select_category, select_cipher
from dailycipher.store import PuzzleStore

from .models import OrchestrationResult, Tier, TierRecord

logger = logging.getLogger(__name__)

DEFAULT_EXCLUSION_DAYS = 30

_TierAttempt = tuple[PuzzleSequence | None, str | None]


class FallbackOrchestrator:
    """
    Tries each tier in strict order and returns the first validated puzzle.

    Order: AI requester, store-backed secondary pool, in-package static
    pool, emergency record. Every tier failure is caught and recorded; the
    emergency record cannot fail, so ``generate`` always returns.
    """

    def __init__(
        self,
        store: PuzzleStore,
        requester: ContentRequester | None = None,
        exclusion_days: int = DEFAULT_EXCLUSION_DAYS,
        static_pool: Sequence[Mapping[str, Any]] = STATIC_POOL,
        emergency: PuzzleSequence = EMERGENCY_PUZZLE,
    ) -> None:
        self._store = store
        self._requester = requester
        self._exclusion_days = exclusion_days
        self._static_pool = static_pool
        self._emergency = emergency

    @classmethod
    def from_settings(cls, settings: GeneratorSettings, store: PuzzleStore) -> FallbackOrchestrator:
        """Wire a LiteLLM-backed requester from *settings*, or none when AI is disabled."""
        requester: ContentRequester | None = None
        if settings.ai_enabled:
            client = LiteLLMClient(
                model_name=settings.model_name,
                api_base=settings.api_base,
                api_key=settings.api_key,
                request_timeout_s=settings.timeout_s,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
            )
            requester = ContentRequester(
                client=client,
                max_attempts=settings.max_attempts,
                base_delay_s=settings.base_delay_s,
                max_delay_s=settings.max_delay_s,
            )
        return cls(store=store, requester=requester, exclusion_days=settings.exclusion_days)

    def generate(
        self,
        date_str: str,
        metrics: GenerationMetrics | None = None,
    ) -> OrchestrationResult:
        """Produce the puzzle for *date_str*. Never raises."""
        metrics = metrics if metrics is not None else GenerationMetrics()
        exclusions = self._load_exclusions()
        tiers: list[TierRecord] = []

        runners = (
            (Tier.ai, self._try_ai),
            (Tier.secondary_pool, self._try_secondary_pool),
            (Tier.static_pool, self._try_static_pool),
        )
        for tier, runner in runners:
            logger.info("Orchestrator: trying %s tier for %s", tier.value, date_str)
            try:
                puzzle, error = runner(date_str, exclusions, metrics)
            except Exception as exc:
                logger.exception("Orchestrator: %s tier raised for %s", tier.value, date_str)
                puzzle, error = None, f"{type(exc).__name__}: {exc}"

            tiers.append(TierRecord(tier=tier, success=puzzle is not None, error=error))
            if puzzle is not None:
                return self._finish(date_str, puzzle, tiers, metrics)

            logger.warning("Orchestrator: %s tier failed for %s: %s", tier.value, date_str, error)

        logger.critical(
            "Orchestrator: all generation tiers failed for %s; serving emergency record",
            date_str,
        )
        tiers.append(TierRecord(tier=Tier.emergency, success=True))
        return self._finish(date_str, self._emergency, tiers, metrics)

    def _load_exclusions(self) -> frozenset[str]:
        try:
            answers = self._store.get_recent_answers(self._exclusion_days)
        except Exception:
            logger.exception("Orchestrator: could not read recent answers; using empty exclusion set")
            return frozenset()
        return frozenset(answer.upper() for answer in answers)

    def _finish(
        self,
        date_str: str,
        puzzle: PuzzleSequence,
        tiers: list[TierRecord],
        metrics: GenerationMetrics,
    ) -> OrchestrationResult:
        stamped = puzzle.model_copy(update={"date": date_str})
        metrics.record_source(stamped.source)
        logger.info(
            "Orchestrator: %s puzzle ready for %s (%s -> %s)",
            stamped.source.value,
            date_str,
            stamped.p1_answer,
            stamped.p2_answer,
        )
        return OrchestrationResult(
            date=date_str,
            puzzle=stamped,
            source=stamped.source,
            tiers=tiers,
            metrics=metrics,
        )

    def _try_ai(
        self,
        date_str: str,
        exclusions: Collection[str],
        metrics: GenerationMetrics,
    ) -> _TierAttempt:
        if self._requester is None:
            return None, "AI generation is disabled."
        outcome = self._requester.request_puzzle(date_str, exclusions, metrics)
        if outcome.success and outcome.puzzle is not None:
            return outcome.puzzle, None
        return None, outcome.error

    def _try_secondary_pool(
        self,
        date_str: str,
        exclusions: Collection[str],
        metrics: GenerationMetrics,
    ) -> _TierAttempt:
        pool = self._store.get_fallback_pool()
        return self._try_pool(pool, PuzzleSource.pool_fallback, date_str, exclusions, metrics)

    def _try_static_pool(
        self,
        date_str: str,
        exclusions: Collection[str],
        metrics: GenerationMetrics,
    ) -> _TierAttempt:
        return self._try_pool(
            self._static_pool, PuzzleSource.static_fallback, date_str, exclusions, metrics
        )

    def _try_pool(
        self,
        pool: Sequence[Mapping[str, Any]],
        source: PuzzleSource,
        date_str: str,
        exclusions: Collection[str],
        metrics: GenerationMetrics,
    ) -> _TierAttempt:
        record = select_from_pool(pool, date_seed(date_str), exclusions)
        if record is None:
            return None, f"{source.value} pool is empty."

        outcome = validate_record(
            record,
            exclusions,
            source=source,
            default_cipher=select_cipher(date_str),
            default_category=select_category(date_str),
        )
        if outcome.healed:
            metrics.heals += 1
        if not outcome.success or outcome.puzzle is None:
            metrics.validation_failures += 1
            return None, outcome.error
        return outcome.puzzle, None
