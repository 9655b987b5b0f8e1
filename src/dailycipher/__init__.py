"""Daily three-part cipher puzzle generation with tiered fallbacks."""

__version__ = "0.1.0"
