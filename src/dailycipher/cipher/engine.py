"""Deterministic cipher engine over the uppercase Latin alphabet."""

from __future__ import annotations

import re
from enum import Enum

from dailycipher.errors import (
    InvalidInputError,
    IrreversibleCipherError,
    UnknownCipherError,
)

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
VOWELS = frozenset("AEIOU")

_LETTER_RUN = re.compile(r"[A-Z]+")
_NUMBER_RUN = re.compile(r"\d+(?:-\d+)*")


class CipherType(str, Enum):
    """Closed set of supported cipher variants."""

    rot13 = "rot13"
    caesar_3 = "caesar_3"
    caesar_5 = "caesar_5"
    caesar_7 = "caesar_7"
    caesar_minus_3 = "caesar_minus_3"
    atbash = "atbash"
    reverse = "reverse"
    number = "number"
    consonant_vowel = "consonant_vowel"


# Signed shift for every rotation-style variant.
SHIFTS: dict[CipherType, int] = {
    CipherType.rot13: 13,
    CipherType.caesar_3: 3,
    CipherType.caesar_5: 5,
    CipherType.caesar_7: 7,
    CipherType.caesar_minus_3: -3,
}

SUBSTITUTION_CIPHERS: frozenset[CipherType] = frozenset({*SHIFTS, CipherType.atbash})

INVOLUTIONS: frozenset[CipherType] = frozenset({
    CipherType.rot13,
    CipherType.atbash,
    CipherType.reverse,
})


def coerce_cipher(cipher_type: CipherType | str) -> CipherType:
    """Return the ``CipherType`` for *cipher_type* or raise ``UnknownCipherError``."""
    if isinstance(cipher_type, CipherType):
        return cipher_type
    if isinstance(cipher_type, str):
        normalized = cipher_type.strip().lower().replace("-", "_")
        try:
            return CipherType(normalized)
        except ValueError:
            pass
    raise UnknownCipherError(f"Unknown cipher type: {cipher_type!r}")


def _require_word(word: object) -> str:
    if not isinstance(word, str) or not word.strip():
        raise InvalidInputError(f"Cipher input must be a non-empty string, got {word!r}")
    return word.upper()


def caesar_shift(word: str, offset: int) -> str:
    """Shift every A-Z letter by *offset* positions; other characters pass through."""
    text = _require_word(word)
    shifted: list[str] = []
    for char in text:
        index = ALPHABET.find(char)
        if index < 0:
            shifted.append(char)
        else:
            shifted.append(ALPHABET[(index + offset) % 26])
    return "".join(shifted)


def _atbash(text: str) -> str:
    return "".join(
        ALPHABET[25 - ALPHABET.index(char)] if char in ALPHABET else char for char in text
    )


def _to_numbers(text: str) -> str:
    return _LETTER_RUN.sub(
        lambda match: "-".join(str(ALPHABET.index(char) + 1) for char in match.group()),
        text,
    )


def _from_numbers(text: str) -> str:
    def _letters(match: re.Match[str]) -> str:
        letters: list[str] = []
        for token in match.group().split("-"):
            value = int(token)
            if not 1 <= value <= 26:
                raise InvalidInputError(f"Letter ordinal out of range: {value}")
            letters.append(ALPHABET[value - 1])
        return "".join(letters)

    return _NUMBER_RUN.sub(_letters, text)


def _partition(text: str) -> str:
    def _split(match: re.Match[str]) -> str:
        run = match.group()
        consonants = [char for char in run if char not in VOWELS]
        vowels = [char for char in run if char in VOWELS]
        return "".join(consonants + vowels)

    return _LETTER_RUN.sub(_split, text)


def encode(word: str, cipher_type: CipherType | str) -> str:
    """
    Encode *word* with *cipher_type*.

    Input is uppercased first. Substitution variants map each letter
    independently and leave every other character untouched.
    """
    cipher = coerce_cipher(cipher_type)
    text = _require_word(word)

    if cipher in SHIFTS:
        return caesar_shift(text, SHIFTS[cipher])
    if cipher is CipherType.atbash:
        return _atbash(text)
    if cipher is CipherType.reverse:
        return text[::-1]
    if cipher is CipherType.number:
        return _to_numbers(text)
    if cipher is CipherType.consonant_vowel:
        return _partition(text)

    raise UnknownCipherError(f"No encoder registered for {cipher.value!r}")  # pragma: no cover


def decode(text: str, cipher_type: CipherType | str) -> str:
    """Invert :func:`encode` for every variant that keeps enough information."""
    cipher = coerce_cipher(cipher_type)
    value = _require_word(text)

    if cipher in SHIFTS:
        return caesar_shift(value, -SHIFTS[cipher])
    if cipher is CipherType.atbash:
        return _atbash(value)
    if cipher is CipherType.reverse:
        return value[::-1]
    if cipher is CipherType.number:
        return _from_numbers(value)

    raise IrreversibleCipherError(f"Cipher {cipher.value!r} cannot be decoded")


_HINTS: dict[CipherType, tuple[str, str, str]] = {
    CipherType.rot13: (
        "Every letter has been swapped for another letter in the alphabet.",
        "The shift is exactly half the alphabet.",
        "ROT13: move each letter 13 places (A becomes N).",
    ),
    CipherType.caesar_3: (
        "Every letter has been moved along the alphabet.",
        "Julius Caesar used this exact shift.",
        "Caesar +3: move each letter back 3 places to decode (D becomes A).",
    ),
    CipherType.caesar_5: (
        "Every letter has been moved along the alphabet.",
        "Count the fingers on one hand.",
        "Caesar +5: move each letter back 5 places to decode (F becomes A).",
    ),
    CipherType.caesar_7: (
        "Every letter has been moved along the alphabet.",
        "Think of the days in a week.",
        "Caesar +7: move each letter back 7 places to decode (H becomes A).",
    ),
    CipherType.caesar_minus_3: (
        "Every letter has been moved along the alphabet.",
        "The letters moved backwards, not forwards.",
        "Caesar -3: move each letter forward 3 places to decode (X becomes A).",
    ),
    CipherType.atbash: (
        "The alphabet has been turned into its own reflection.",
        "The first letter trades places with the last.",
        "Atbash: A becomes Z, B becomes Y, and so on.",
    ),
    CipherType.reverse: (
        "No letter has been changed, only their order.",
        "Try reading from the other end.",
        "Reverse: read the word backwards.",
    ),
    CipherType.number: (
        "The letters have been replaced by numbers.",
        "Each number is a position in the alphabet.",
        "A=1, B=2 and so on up to Z=26.",
    ),
    CipherType.consonant_vowel: (
        "All the original letters are still here.",
        "The letters have been sorted into two groups.",
        "Consonants come first, then the vowels, each group in its original order.",
    ),
}


def cipher_hints(cipher_type: CipherType | str) -> tuple[str, str, str]:
    """Return the three canonical, increasingly specific hints for a cipher."""
    return _HINTS[coerce_cipher(cipher_type)]


def reapply_hint(cipher_type: CipherType | str) -> str:
    """Return the instruction shown for the final encryption step."""
    cipher = coerce_cipher(cipher_type)
    return f"Encrypt your answer with the same cipher you broke in part one ({cipher.value})."
