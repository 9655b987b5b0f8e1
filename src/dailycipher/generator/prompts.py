"""Deterministic prompt builder for puzzle generation attempts."""

from __future__ import annotations

import json
from collections.abc import Collection
from enum import Enum

from dailycipher.cipher.engine import CipherType, cipher_hints, encode

# Cap on recent answers listed in the prompt so we do not bloat context.
MAX_EXCLUSIONS_IN_PROMPT = 50

SYSTEM_PROMPT = """
You write daily three-part cipher puzzles.
Part 1: the player decrypts an encrypted word.
Part 2: the player answers a trivia question that references the decrypted word.
Part 3: the player encrypts the trivia answer with the same cipher.
You MUST respond with a single JSON object and nothing else.
""".strip()

_SCHEMA_FIELDS = (
    "cipherType",
    "p1Answer",
    "p1EncryptedWord",
    "p1Hint1",
    "p1Hint2",
    "p1Hint3",
    "p2Question",
    "p2Hint1",
    "p2Hint2",
    "p2Hint3",
    "p2Answer",
    "p2AltAnswers",
    "p3Answer",
    "p3Hint",
    "category",
)


class PromptVariant(str, Enum):
    """Prompt richness, tried in declaration order."""

    rich = "rich"
    reduced = "reduced"
    minimal = "minimal"


PROMPT_ESCALATION: tuple[PromptVariant, ...] = tuple(PromptVariant)


def _cipher_description(cipher: CipherType) -> str:
    return cipher_hints(cipher)[2]


def _worked_example(cipher: CipherType) -> str:
    p1, p2 = "PIANO", "MOZART"
    example = {
        "cipherType": cipher.value,
        "p1Answer": p1,
        "p1EncryptedWord": encode(p1, cipher),
        "p1Hint1": "Every letter has been changed.",
        "p1Hint2": "The change follows one fixed rule.",
        "p1Hint3": _cipher_description(cipher),
        "p2Question": f"Which Austrian composer wrote 21 concertos for the {p1.lower()}?",
        "p2Hint1": "He was a child prodigy.",
        "p2Hint2": "His middle name was Amadeus.",
        "p2Hint3": "He wrote The Magic Flute.",
        "p2Answer": p2,
        "p2AltAnswers": ["WOLFGANG AMADEUS MOZART"],
        "p3Answer": encode(p2, cipher),
        "p3Hint": "Encrypt your answer with the same cipher.",
        "category": "Music",
    }
    return json.dumps(example, indent=2)


def _exclusion_block(exclusions: Collection[str]) -> str:
    if not exclusions:
        return ""
    listed = sorted({answer.upper() for answer in exclusions})[:MAX_EXCLUSIONS_IN_PROMPT]
    return "Do NOT use any of these recent answers: " + ", ".join(listed)


def build_puzzle_prompt(
    *,
    date_str: str,
    category: str,
    cipher: CipherType,
    exclusions: Collection[str],
    variant: PromptVariant = PromptVariant.rich,
) -> str:
    """
    Build the user prompt for one generation attempt.

    ``rich`` embeds rules and a worked example, ``reduced`` keeps the rules
    without the example, and ``minimal`` asks only for the required fields.
    """
    sections: list[str] = [
        f"Date: {date_str}",
        f"Category: {category}",
        f"Cipher: {cipher.value} ({_cipher_description(cipher)})",
    ]

    exclusion_text = _exclusion_block(exclusions)
    if exclusion_text:
        sections.append(exclusion_text)

    if variant is PromptVariant.minimal:
        sections += [
            "",
            "Return JSON with keys p1Answer, p2Question and p2Answer.",
            "p1Answer and p2Answer are different single English words in uppercase.",
            "p2Question must mention p1Answer.",
        ]
        return "\n".join(sections)

    sections += [
        "",
        "## Rules",
        "- p1Answer: one common English word, 4 to 10 letters, uppercase.",
        "- p1EncryptedWord: p1Answer encrypted with the cipher above.",
        "- p1Hint1..3: hints about the cipher, not the word, each more specific.",
        "- p2Question: a trivia question that mentions p1Answer.",
        "- p2Answer: a different word, 4 to 10 letters, uppercase.",
        "- p2AltAnswers: other acceptable spellings of p2Answer.",
        "- p3Answer: p2Answer encrypted with the same cipher.",
        "",
        "## JSON keys",
        ", ".join(_SCHEMA_FIELDS),
    ]

    if variant is PromptVariant.rich:
        sections += [
            "",
            "## Example",
            "```json",
            _worked_example(cipher),
            "```",
        ]

    return "\n".join(sections)
