"""Pydantic models shared across the generation pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dailycipher.cipher.engine import CipherType, encode

MIN_ANSWER_LENGTH = 2
MAX_ANSWER_LENGTH = 20

# Untyped record as parsed from AI output or loaded from a pool.
RawRecord = dict[str, Any]


class PuzzleSource(str, Enum):
    """Provenance tag of a returned puzzle sequence."""

    ai = "ai"
    pool_fallback = "pool-fallback"
    static_fallback = "static-fallback"
    emergency = "emergency"


class PuzzleSequence(BaseModel):
    """
    One day's decrypt -> trivia -> encrypt chain.

    Serialised field names are camelCase (``p1Answer``) to match the AI
    contract and stored rows; Python attributes are snake_case.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    cipher_type: CipherType = Field(alias="cipherType")
    p1_answer: str = Field(
        alias="p1Answer", min_length=MIN_ANSWER_LENGTH, max_length=MAX_ANSWER_LENGTH
    )
    p1_encrypted_word: str = Field(alias="p1EncryptedWord", min_length=1)
    p1_hint1: str = Field(alias="p1Hint1", min_length=1)
    p1_hint2: str = Field(alias="p1Hint2", min_length=1)
    p1_hint3: str = Field(alias="p1Hint3", min_length=1)
    p2_question: str = Field(alias="p2Question", min_length=1)
    p2_hint1: str = Field(alias="p2Hint1", min_length=1)
    p2_hint2: str = Field(alias="p2Hint2", min_length=1)
    p2_hint3: str = Field(alias="p2Hint3", min_length=1)
    p2_answer: str = Field(
        alias="p2Answer", min_length=MIN_ANSWER_LENGTH, max_length=MAX_ANSWER_LENGTH
    )
    p2_alt_answers: list[str] = Field(alias="p2AltAnswers", default_factory=list)
    p3_answer: str = Field(alias="p3Answer", min_length=1)
    p3_hint: str = Field(alias="p3Hint", min_length=1)
    category: str = Field(min_length=1)
    source: PuzzleSource
    date: str | None = Field(default=None, description="Target calendar date (YYYY-MM-DD)")

    @model_validator(mode="after")
    def _check_cipher_chain(self) -> "PuzzleSequence":
        if self.p1_answer.upper() == self.p2_answer.upper():
            raise ValueError("p1Answer and p2Answer must differ.")
        if encode(self.p1_answer, self.cipher_type) != self.p1_encrypted_word:
            raise ValueError("p1EncryptedWord does not match the cipher image of p1Answer.")
        if encode(self.p2_answer, self.cipher_type) != self.p3_answer:
            raise ValueError("p3Answer does not match the cipher image of p2Answer.")
        return self

    @property
    def answers(self) -> frozenset[str]:
        return frozenset({self.p1_answer.upper(), self.p2_answer.upper()})

    def to_record(self) -> RawRecord:
        """Return the camelCase dict form used by stores and the API."""
        return self.model_dump(mode="json", by_alias=True)


class GenerationMetrics(BaseModel):
    """
    Counters for a single orchestrator invocation.

    Created by the caller and passed down explicitly; nothing in the
    pipeline keeps metrics in module state.
    """

    attempts: int = 0
    successes: int = 0
    fallback_uses: int = 0
    validation_failures: int = 0
    parse_failures: int = 0
    heals: int = 0
    transient_errors: int = 0
    fatal_errors: int = 0
    by_source: dict[str, int] = Field(default_factory=dict)

    def record_source(self, source: PuzzleSource) -> None:
        self.by_source[source.value] = self.by_source.get(source.value, 0) + 1
        if source is not PuzzleSource.ai:
            self.fallback_uses += 1

    def merge(self, other: GenerationMetrics) -> None:
        """Add *other*'s counters into this accumulator."""
        for name in (
            "attempts",
            "successes",
            "fallback_uses",
            "validation_failures",
            "parse_failures",
            "heals",
            "transient_errors",
            "fatal_errors",
        ):
            setattr(self, name, getattr(self, name) + getattr(other, name))
        for source, count in other.by_source.items():
            self.by_source[source] = self.by_source.get(source, 0) + count

    @property
    def ai_success_rate(self) -> float:
        total = sum(self.by_source.values())
        if total == 0:
            return 0.0
        return self.by_source.get(PuzzleSource.ai.value, 0) / total
