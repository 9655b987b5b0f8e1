"""Fallback puzzle pools and deterministic selection over them."""

from .static import EMERGENCY_PUZZLE, STATIC_POOL, record_answers, select_from_pool

__all__ = [
    "EMERGENCY_PUZZLE",
    "STATIC_POOL",
    "record_answers",
    "select_from_pool",
]
