"""Four-phase validation and self-healing of candidate puzzle records."""

from __future__ import annotations

import logging
from collections.abc import Collection
from enum import Enum

from pydantic import BaseModel, Field, ValidationError

from dailycipher.cipher.engine import CipherType, cipher_hints, coerce_cipher, encode, reapply_hint
from dailycipher.errors import CipherError
from dailycipher.models import (
    MAX_ANSWER_LENGTH,
    MIN_ANSWER_LENGTH,
    PuzzleSequence,
    PuzzleSource,
    RawRecord,
)
from dailycipher.selector import normalize_category

logger = logging.getLogger(__name__)

ESSENTIAL_FIELDS = ("p1Answer", "p2Question", "p2Answer")

# Soft content-quality bounds: violations are logged, never fatal.
QUALITY_ANSWER_LENGTH = (3, 15)
QUALITY_QUESTION_LENGTH = (10, 300)
MIN_HINT_LENGTH = 3

_P1_HINTS = ("p1Hint1", "p1Hint2", "p1Hint3")
_P2_HINTS = ("p2Hint1", "p2Hint2", "p2Hint3")


class ValidationPhase(str, Enum):
    """Pipeline phase, in execution order."""

    structure = "structure"
    cryptographic = "cryptographic"
    quality = "quality"
    uniqueness = "uniqueness"


class ValidationOutcome(BaseModel):
    """Result of validating one record. ``phase`` names the rejecting phase."""

    success: bool
    puzzle: PuzzleSequence | None = None
    phase: ValidationPhase | None = None
    error: str | None = None
    healed_fields: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def healed(self) -> bool:
        return bool(self.healed_fields)


def _text(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _reject(
    phase: ValidationPhase,
    error: str,
    healed: list[str],
    warnings: list[str] | None = None,
) -> ValidationOutcome:
    logger.warning("Record rejected in %s phase: %s", phase.value, error)
    return ValidationOutcome(
        success=False,
        phase=phase,
        error=error,
        healed_fields=healed,
        warnings=warnings or [],
    )


def _recover_cipher(answer: str, image: object) -> CipherType | None:
    """Return the first cipher that maps *answer* onto the given *image*."""
    image_text = _text(image)
    if image_text is None:
        return None
    for cipher in CipherType:
        if encode(answer, cipher) == image_text.upper():
            return cipher
    return None


def _generic_p2_hints(answer: str, category: str) -> tuple[str, str, str]:
    return (
        f"Think about the category: {category}.",
        f"The answer has {len(answer)} letters.",
        f"It starts with the letter {answer[0]}.",
    )


def _check_structure(
    work: RawRecord,
    healed: list[str],
    default_cipher: CipherType,
    default_category: str,
) -> str | None:
    """Normalise *work* in place. Returns an error message when unhealable."""
    missing = [name for name in ESSENTIAL_FIELDS if _text(work.get(name)) is None]
    if missing:
        return f"Missing essential fields: {', '.join(missing)}"

    for name in ("p1Answer", "p2Answer"):
        answer = _text(work[name]).upper()  # type: ignore[union-attr]
        if not MIN_ANSWER_LENGTH <= len(answer) <= MAX_ANSWER_LENGTH:
            return (
                f"{name} length {len(answer)} outside "
                f"[{MIN_ANSWER_LENGTH}, {MAX_ANSWER_LENGTH}]"
            )
        if not any("A" <= char <= "Z" for char in answer):
            return f"{name} contains no letters"
        work[name] = answer
    work["p2Question"] = _text(work["p2Question"])

    try:
        cipher = coerce_cipher(work.get("cipherType"))
    except CipherError:
        recovered = _recover_cipher(work["p1Answer"], work.get("p1EncryptedWord"))
        healed.append("cipherType")
        if recovered is not None:
            cipher = recovered
        else:
            # Model hints describe a cipher we could not identify.
            cipher = default_cipher
            for name, canonical in zip(_P1_HINTS, cipher_hints(cipher)):
                work[name] = canonical
                healed.append(name)
            work["p3Hint"] = reapply_hint(cipher)
            healed.append("p3Hint")
    work["cipherType"] = cipher.value

    category = normalize_category(work.get("category"))
    if category is None:
        category = default_category
        healed.append("category")
    work["category"] = category

    for name, canonical in zip(_P1_HINTS, cipher_hints(cipher)):
        if _text(work.get(name)) is None:
            work[name] = canonical
            healed.append(name)
        else:
            work[name] = _text(work[name])

    for name, generic in zip(_P2_HINTS, _generic_p2_hints(work["p2Answer"], category)):
        if _text(work.get(name)) is None:
            work[name] = generic
            healed.append(name)
        else:
            work[name] = _text(work[name])

    if _text(work.get("p3Hint")) is None:
        work["p3Hint"] = reapply_hint(cipher)
        healed.append("p3Hint")
    else:
        work["p3Hint"] = _text(work["p3Hint"])

    alternates = work.get("p2AltAnswers")
    if not isinstance(alternates, list):
        if alternates is not None:
            healed.append("p2AltAnswers")
        alternates = []
    cleaned = [alt.strip().upper() for alt in alternates if _text(alt) is not None]
    if len(cleaned) != len(alternates):
        healed.append("p2AltAnswers")
    work["p2AltAnswers"] = cleaned
    return None


def _check_cryptography(work: RawRecord, healed: list[str]) -> str | None:
    if work["p1Answer"] == work["p2Answer"]:
        return f"p1Answer and p2Answer are both '{work['p1Answer']}'"

    cipher = work["cipherType"]
    for answer_field, image_field in (("p1Answer", "p1EncryptedWord"), ("p2Answer", "p3Answer")):
        expected = encode(work[answer_field], cipher)
        if work.get(image_field) != expected:
            work[image_field] = expected
            healed.append(image_field)
    return None


def _check_quality(work: RawRecord) -> list[str]:
    warnings: list[str] = []
    low, high = QUALITY_ANSWER_LENGTH
    for name in ("p1Answer", "p2Answer"):
        if not low <= len(work[name]) <= high:
            warnings.append(f"{name} length {len(work[name])} outside [{low}, {high}]")

    low, high = QUALITY_QUESTION_LENGTH
    if not low <= len(work["p2Question"]) <= high:
        warnings.append(f"p2Question length {len(work['p2Question'])} outside [{low}, {high}]")

    for name in (*_P1_HINTS, *_P2_HINTS, "p3Hint"):
        if len(work[name]) < MIN_HINT_LENGTH:
            warnings.append(f"{name} shorter than {MIN_HINT_LENGTH} characters")
    return warnings


def validate_record(
    record: RawRecord,
    exclusion_set: Collection[str],
    *,
    source: PuzzleSource,
    default_cipher: CipherType,
    default_category: str,
    check_uniqueness: bool = True,
) -> ValidationOutcome:
    """
    Run structure, cryptographic, quality and uniqueness phases over *record*.

    Healable problems are repaired on a copy and reported in
    ``healed_fields``. Missing essential fields, identical answers, and
    excluded answers reject the record. The input mapping is never mutated.
    """
    if not isinstance(record, dict):
        return _reject(ValidationPhase.structure, f"Record is {type(record).__name__}, not an object", [])

    work: RawRecord = dict(record)
    work.pop("date", None)
    healed: list[str] = []

    error = _check_structure(work, healed, default_cipher, default_category)
    if error is not None:
        return _reject(ValidationPhase.structure, error, healed)

    error = _check_cryptography(work, healed)
    if error is not None:
        return _reject(ValidationPhase.cryptographic, error, healed)

    warnings = _check_quality(work)
    for warning in warnings:
        logger.warning("Quality warning: %s", warning)

    if check_uniqueness:
        excluded = {answer.upper() for answer in exclusion_set}
        duplicates = [name for name in ("p1Answer", "p2Answer") if work[name] in excluded]
        if duplicates:
            detail = ", ".join(f"{name}={work[name]}" for name in duplicates)
            return _reject(
                ValidationPhase.uniqueness,
                f"Recently used answer(s): {detail}",
                healed,
                warnings,
            )

    work["source"] = source.value
    try:
        puzzle = PuzzleSequence.model_validate(work)
    except ValidationError as err:
        return _reject(ValidationPhase.structure, f"Record failed schema: {err}", healed, warnings)

    if healed:
        logger.warning("Healed record fields: %s", ", ".join(healed))

    return ValidationOutcome(
        success=True,
        puzzle=puzzle,
        healed_fields=healed,
        warnings=warnings,
    )
