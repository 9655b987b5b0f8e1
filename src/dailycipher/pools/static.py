"""In-package fallback arena and the emergency record."""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from dailycipher.cipher.engine import CipherType, cipher_hints, encode, reapply_hint
from dailycipher.models import PuzzleSequence, PuzzleSource, RawRecord

logger = logging.getLogger(__name__)


def _entry(
    *,
    cipher: CipherType,
    category: str,
    p1: str,
    question: str,
    p2: str,
    p2_hints: tuple[str, str, str],
    alternates: tuple[str, ...] = (),
) -> Mapping[str, Any]:
    hint1, hint2, hint3 = cipher_hints(cipher)
    return MappingProxyType({
        "cipherType": cipher.value,
        "p1Answer": p1,
        "p1EncryptedWord": encode(p1, cipher),
        "p1Hint1": hint1,
        "p1Hint2": hint2,
        "p1Hint3": hint3,
        "p2Question": question,
        "p2Hint1": p2_hints[0],
        "p2Hint2": p2_hints[1],
        "p2Hint3": p2_hints[2],
        "p2Answer": p2,
        "p2AltAnswers": list(alternates),
        "p3Answer": encode(p2, cipher),
        "p3Hint": reapply_hint(cipher),
        "category": category,
    })


STATIC_POOL: tuple[Mapping[str, Any], ...] = (
    _entry(
        cipher=CipherType.caesar_3,
        category="Science",
        p1="OXYGEN",
        question="Which scientist is credited with naming OXYGEN in 1777?",
        p2="LAVOISIER",
        p2_hints=("He was French.", "He is called the father of modern chemistry.", "He was executed in 1794."),
    ),
    _entry(
        cipher=CipherType.rot13,
        category="Space",
        p1="SATURN",
        question="What is the name of the largest moon of SATURN?",
        p2="TITAN",
        p2_hints=("It has a thick atmosphere.", "The Huygens probe landed on it.", "It shares its name with a Greek deity class."),
    ),
    _entry(
        cipher=CipherType.atbash,
        category="History",
        p1="PHARAOH",
        question="Which boy PHARAOH's tomb was discovered by Howard Carter in 1922?",
        p2="TUTANKHAMUN",
        p2_hints=("He died young.", "His golden mask is famous.", "Often shortened to King Tut."),
        alternates=("TUTANKHAMEN", "TUT"),
    ),
    _entry(
        cipher=CipherType.caesar_5,
        category="Geography",
        p1="DESERT",
        question="What is the largest hot DESERT in the world?",
        p2="SAHARA",
        p2_hints=("It is in Africa.", "Its name means desert in Arabic.", "It spans eleven countries."),
    ),
    _entry(
        cipher=CipherType.caesar_7,
        category="Music",
        p1="GUITAR",
        question="Which left-handed GUITAR player performed at Woodstock in 1969?",
        p2="HENDRIX",
        p2_hints=("His first name was Jimi.", "He was born in Seattle.", "He played Purple Haze."),
    ),
    _entry(
        cipher=CipherType.caesar_minus_3,
        category="Literature",
        p1="WHALE",
        question="Which captain hunts the white WHALE in Moby-Dick?",
        p2="AHAB",
        p2_hints=("He commands the Pequod.", "He lost a leg.", "His name comes from a biblical king."),
    ),
    _entry(
        cipher=CipherType.rot13,
        category="Technology",
        p1="PYTHON",
        question="Which comedy troupe is the PYTHON programming language named after?",
        p2="MONTY",
        p2_hints=("They were British.", "They made Flying Circus.", "Think of the Holy Grail."),
        alternates=("MONTY PYTHON",),
    ),
    _entry(
        cipher=CipherType.atbash,
        category="Food",
        p1="TOMATO",
        question="Which Italian city is famous for pizza topped with TOMATO and mozzarella?",
        p2="NAPLES",
        p2_hints=("It sits near Vesuvius.", "In Italian it is Napoli.", "Margherita pizza was named there."),
        alternates=("NAPOLI",),
    ),
    _entry(
        cipher=CipherType.caesar_3,
        category="Nature",
        p1="BAMBOO",
        question="Which black and white bear eats almost nothing but BAMBOO?",
        p2="PANDA",
        p2_hints=("It lives in China.", "It is the WWF logo.", "Giant is part of its full name."),
    ),
    _entry(
        cipher=CipherType.caesar_5,
        category="Art",
        p1="SMILE",
        question="Which painting is famous for its mysterious SMILE?",
        p2="MONALISA",
        p2_hints=("It hangs in the Louvre.", "Leonardo painted it.", "Also known as La Gioconda."),
        alternates=("MONA LISA", "LA GIOCONDA"),
    ),
    _entry(
        cipher=CipherType.caesar_7,
        category="Sports",
        p1="MARATHON",
        question="In which country is the town that gave the MARATHON its name?",
        p2="GREECE",
        p2_hints=("It hosted the first modern Olympics.", "Its capital is Athens.", "It is in southern Europe."),
    ),
    _entry(
        cipher=CipherType.reverse,
        category="Film",
        p1="DINOSAUR",
        question="Which island theme park is overrun by DINOSAUR clones in a 1993 film?",
        p2="JURASSIC",
        p2_hints=("It was directed by Spielberg.", "It is based on a Crichton novel.", "The full title ends in Park."),
        alternates=("JURASSIC PARK",),
    ),
)

_EMERGENCY_CIPHER = CipherType.caesar_3

# Self-consistent terminal record. Built from literals, no I/O.
EMERGENCY_PUZZLE = PuzzleSequence(
    cipherType=_EMERGENCY_CIPHER,
    p1Answer="HELLO",
    p1EncryptedWord=encode("HELLO", _EMERGENCY_CIPHER),
    p1Hint1=cipher_hints(_EMERGENCY_CIPHER)[0],
    p1Hint2=cipher_hints(_EMERGENCY_CIPHER)[1],
    p1Hint3=cipher_hints(_EMERGENCY_CIPHER)[2],
    p2Question="Which word is the traditional first program output, alongside HELLO?",
    p2Hint1="Programmers print it first.",
    p2Hint2="It is the planet we live on.",
    p2Hint3="It completes the phrase HELLO ___.",
    p2Answer="WORLD",
    p2AltAnswers=[],
    p3Answer=encode("WORLD", _EMERGENCY_CIPHER),
    p3Hint=reapply_hint(_EMERGENCY_CIPHER),
    category="Technology",
    source=PuzzleSource.emergency,
)


def record_answers(record: Mapping[str, Any]) -> set[str]:
    """Return the uppercase answers of a raw record, skipping non-strings."""
    answers: set[str] = set()
    for name in ("p1Answer", "p2Answer"):
        value = record.get(name)
        if isinstance(value, str) and value.strip():
            answers.add(value.strip().upper())
    return answers


def select_from_pool(
    pool: Sequence[Mapping[str, Any]],
    seed: int,
    exclusion_set: Collection[str],
) -> RawRecord | None:
    """
    Pick ``pool[seed % len(pool)]`` after dropping records with excluded answers.

    If every record is excluded the unfiltered pool is used instead of
    returning nothing. Returns ``None`` only for an empty pool.
    """
    if not pool:
        return None

    excluded = {answer.upper() for answer in exclusion_set}
    candidates = [record for record in pool if not (record_answers(record) & excluded)]
    if not candidates:
        logger.warning(
            "All %d pool records intersect the exclusion set; using unfiltered pool.",
            len(pool),
        )
        candidates = list(pool)

    return dict(candidates[seed % len(candidates)])
