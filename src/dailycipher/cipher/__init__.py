"""Cipher engine used by every generation tier."""

from .engine import (
    SUBSTITUTION_CIPHERS,
    CipherType,
    caesar_shift,
    cipher_hints,
    decode,
    encode,
    reapply_hint,
)

__all__ = [
    "SUBSTITUTION_CIPHERS",
    "CipherType",
    "caesar_shift",
    "cipher_hints",
    "decode",
    "encode",
    "reapply_hint",
]
