"""ContentRequester - prompt, call, parse and validate with bounded retries."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Collection

from dailycipher.cipher.engine import CipherType
from dailycipher.errors import QuotaOrAuthError, TransientNetworkError
from dailycipher.models import GenerationMetrics, PuzzleSequence, PuzzleSource
from dailycipher.selector import select_category, select_cipher

from .extractor import extract_record
from .gateway import LiteLLMClient
from .models import AttemptRecord, AttemptStage, GenerationOutcome
from .prompts import PROMPT_ESCALATION, PromptVariant, build_puzzle_prompt
from .validator import validate_record

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
BASE_DELAY_S = 1.0
MAX_DELAY_S = 8.0


def backoff_delay(attempt_number: int, base_delay_s: float, max_delay_s: float) -> float:
    """Exponential delay before the attempt after *attempt_number*, capped."""
    return min(base_delay_s * (2 ** (attempt_number - 1)), max_delay_s)


class ContentRequester:
    """
    Produces a validated puzzle from the generative API or reports failure.

    Each prompt variant in ``rich -> reduced -> minimal`` gets up to
    ``max_attempts`` tries. Transient gateway errors, unparseable responses
    and rejected records all count as a failed attempt and are followed by
    an exponential backoff sleep. A credential error aborts immediately.
    """

    def __init__(
        self,
        client: LiteLLMClient | None = None,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay_s: float = BASE_DELAY_S,
        max_delay_s: float = MAX_DELAY_S,
        variants: tuple[PromptVariant, ...] = PROMPT_ESCALATION,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._client = client or LiteLLMClient()
        self._max_attempts = max_attempts
        self._base_delay_s = base_delay_s
        self._max_delay_s = max_delay_s
        self._variants = variants
        self._sleep = sleep

    def request_puzzle(
        self,
        date_str: str,
        exclusion_set: Collection[str],
        metrics: GenerationMetrics | None = None,
    ) -> GenerationOutcome:
        """Run the attempt loop for *date_str* and return the first validated puzzle."""
        metrics = metrics if metrics is not None else GenerationMetrics()
        category = select_category(date_str)
        cipher = select_cipher(date_str)
        attempts: list[AttemptRecord] = []
        total_budget = self._max_attempts * len(self._variants)

        for variant in self._variants:
            prompt = build_puzzle_prompt(
                date_str=date_str,
                category=category,
                cipher=cipher,
                exclusions=exclusion_set,
                variant=variant,
            )

            for _ in range(self._max_attempts):
                attempt_number = len(attempts) + 1
                metrics.attempts += 1
                logger.info(
                    "Requester: attempt %d/%d for %s (variant=%s, cipher=%s, category=%s)",
                    attempt_number,
                    total_budget,
                    date_str,
                    variant.value,
                    cipher.value,
                    category,
                )

                record = self._attempt(
                    attempt_number=attempt_number,
                    variant=variant,
                    prompt=prompt,
                    date_str=date_str,
                    exclusion_set=exclusion_set,
                    category=category,
                    cipher=cipher,
                    metrics=metrics,
                )
                attempts.append(record.attempt)

                if record.fatal:
                    logger.error(
                        "Requester: credential failure on attempt %d, aborting AI tier: %s",
                        attempt_number,
                        record.attempt.error,
                    )
                    return GenerationOutcome(
                        success=False,
                        attempts=attempts,
                        error=record.attempt.error,
                        fatal=True,
                    )

                if record.outcome is not None:
                    metrics.successes += 1
                    logger.info(
                        "Requester: validated puzzle on attempt %d for %s",
                        attempt_number,
                        date_str,
                    )
                    return GenerationOutcome(
                        success=True,
                        puzzle=record.outcome,
                        attempts=attempts,
                    )

                if attempt_number < total_budget:
                    delay = backoff_delay(attempt_number, self._base_delay_s, self._max_delay_s)
                    logger.info(
                        "Requester: attempt %d failed at %s stage, retrying in %.1fs",
                        attempt_number,
                        record.attempt.stage.value,
                        delay,
                    )
                    self._sleep(delay)

        logger.error(
            "Requester: exhausted %d attempts across %d prompt variants for %s",
            len(attempts),
            len(self._variants),
            date_str,
        )
        last_error = attempts[-1].error if attempts else "No attempts were made."
        return GenerationOutcome(
            success=False,
            attempts=attempts,
            error=f"AI generation exhausted: {last_error}",
        )

    def _attempt(
        self,
        *,
        attempt_number: int,
        variant: PromptVariant,
        prompt: str,
        date_str: str,
        exclusion_set: Collection[str],
        category: str,
        cipher: CipherType,
        metrics: GenerationMetrics,
    ) -> _AttemptResult:
        try:
            raw_response = self._client.generate(prompt)
        except QuotaOrAuthError as err:
            metrics.fatal_errors += 1
            return _AttemptResult(
                AttemptRecord(
                    attempt=attempt_number,
                    variant=variant,
                    stage=AttemptStage.gateway,
                    success=False,
                    error=str(err),
                ),
                fatal=True,
            )
        except TransientNetworkError as err:
            metrics.transient_errors += 1
            logger.warning("Requester: transient gateway error for %s: %s", date_str, err)
            return _AttemptResult(
                AttemptRecord(
                    attempt=attempt_number,
                    variant=variant,
                    stage=AttemptStage.gateway,
                    success=False,
                    error=str(err),
                )
            )

        extraction = extract_record(raw_response)
        if not extraction.success or extraction.record is None:
            metrics.parse_failures += 1
            logger.warning("Requester: could not parse response for %s: %s", date_str, extraction.error)
            return _AttemptResult(
                AttemptRecord(
                    attempt=attempt_number,
                    variant=variant,
                    stage=AttemptStage.extraction,
                    success=False,
                    error=extraction.error,
                )
            )

        validation = validate_record(
            extraction.record,
            exclusion_set,
            source=PuzzleSource.ai,
            default_cipher=cipher,
            default_category=category,
        )
        if validation.healed:
            metrics.heals += 1
        if not validation.success or validation.puzzle is None:
            metrics.validation_failures += 1
            return _AttemptResult(
                AttemptRecord(
                    attempt=attempt_number,
                    variant=variant,
                    stage=AttemptStage.validation,
                    success=False,
                    error=validation.error,
                    extraction_strategy=extraction.strategy,
                    healed_fields=validation.healed_fields,
                )
            )

        return _AttemptResult(
            AttemptRecord(
                attempt=attempt_number,
                variant=variant,
                stage=AttemptStage.complete,
                success=True,
                extraction_strategy=extraction.strategy,
                healed_fields=validation.healed_fields,
            ),
            outcome=validation.puzzle,
        )


class _AttemptResult:
    """Attempt record plus the validated puzzle or fatal flag it produced."""

    def __init__(
        self,
        attempt: AttemptRecord,
        *,
        outcome: PuzzleSequence | None = None,
        fatal: bool = False,
    ) -> None:
        self.attempt = attempt
        self.outcome = outcome
        self.fatal = fatal
