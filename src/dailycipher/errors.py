"""Exception taxonomy for the daily cipher generation pipeline."""

from __future__ import annotations


class DailyCipherError(Exception):
    """Base class for all pipeline errors."""


class CipherError(DailyCipherError, ValueError):
    """Raised by the cipher engine for inputs it cannot encode."""


class UnknownCipherError(CipherError):
    """The cipher type is not a member of the closed ``CipherType`` set."""


class InvalidInputError(CipherError):
    """The word to encode is not a non-empty string."""


class IrreversibleCipherError(CipherError):
    """The cipher discards information and cannot be decoded."""


class GatewayError(DailyCipherError):
    """Base class for generative API call failures."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientNetworkError(GatewayError):
    """Rate limit, server error, timeout or empty body. Eligible for retry."""


class QuotaOrAuthError(GatewayError):
    """Credential or quota rejection. Retrying cannot help."""


class DuplicateDateError(DailyCipherError):
    """A puzzle already exists in the store for the given date."""
