"""Date-seeded deterministic selection of category, cipher and pool index."""

from __future__ import annotations

from dailycipher.cipher.engine import CipherType

CATEGORIES: tuple[str, ...] = (
    "Science",
    "History",
    "Geography",
    "Technology",
    "Music",
    "Film",
    "Sports",
    "Literature",
    "Food",
    "Nature",
    "Space",
    "Art",
)

# AI prompts only use ciphers whose encode step is a per-letter substitution.
SELECTABLE_CIPHERS: tuple[CipherType, ...] = (
    CipherType.caesar_3,
    CipherType.caesar_5,
    CipherType.caesar_7,
    CipherType.caesar_minus_3,
    CipherType.rot13,
    CipherType.atbash,
)

_HASH_MULTIPLIER = 31
_UINT32_MASK = 0xFFFFFFFF


def date_seed(date_str: str) -> int:
    """
    Return the unsigned 32-bit polynomial rolling hash of *date_str*.

    ``h = (h * 31 + ord(ch)) mod 2**32`` over every character, starting at 0.
    The result is identical across processes and platforms.
    """
    seed = 0
    for char in date_str:
        seed = (seed * _HASH_MULTIPLIER + ord(char)) & _UINT32_MASK
    return seed


def pick(seed: int, n: int) -> int:
    """Map *seed* onto an index in ``range(n)``."""
    if n <= 0:
        raise ValueError(f"Cannot pick from an empty list (n={n})")
    return seed % n


def select_index(date_str: str, n: int) -> int:
    return pick(date_seed(date_str), n)


def select_category(date_str: str) -> str:
    return CATEGORIES[select_index(date_str, len(CATEGORIES))]


def select_cipher(date_str: str) -> CipherType:
    # Divide out the category choice so both values do not cycle together.
    seed = date_seed(date_str) // len(CATEGORIES)
    return SELECTABLE_CIPHERS[pick(seed, len(SELECTABLE_CIPHERS))]


def normalize_category(value: object) -> str | None:
    """Return the canonical spelling of a known category, otherwise ``None``."""
    if not isinstance(value, str):
        return None
    lookup = value.strip().lower()
    for category in CATEGORIES:
        if category.lower() == lookup:
            return category
    return None
