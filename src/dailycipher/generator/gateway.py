"""LiteLLM gateway for outbound puzzle generation requests."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from litellm import completion

from dailycipher.errors import GatewayError, QuotaOrAuthError, TransientNetworkError

from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

_DEFAULT_LLM_TIMEOUT_S = 30.0
_DEFAULT_TEMPERATURE = 0.3
_DEFAULT_MAX_TOKENS = 1024

# Credential and permission failures: retrying cannot help.
FATAL_STATUS_CODES: frozenset[int] = frozenset({401, 403})


def _read_mapping_value(obj: object, key: str) -> object:
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def _extract_content(response: object) -> str:
    choices = _read_mapping_value(response, "choices")
    if not isinstance(choices, list) or not choices:
        return ""

    message = _read_mapping_value(choices[0], "message")
    content = _read_mapping_value(message, "content")
    return content if isinstance(content, str) else ""


def classify_error(err: Exception) -> GatewayError:
    """Map a provider exception to a transient or fatal gateway error."""
    status = getattr(err, "status_code", None)
    if not isinstance(status, int):
        status = None
    if status in FATAL_STATUS_CODES:
        return QuotaOrAuthError(f"Generative API rejected credentials: {err}", status_code=status)
    return TransientNetworkError(f"Generative API request failed: {err}", status_code=status)


class LiteLLMClient:
    """Wrapper around LiteLLM completion that returns raw response text."""

    def __init__(
        self,
        model_name: str = "gpt-4o-mini",
        api_base: str | None = None,
        api_key: str | None = None,
        request_timeout_s: float = _DEFAULT_LLM_TIMEOUT_S,
        temperature: float = _DEFAULT_TEMPERATURE,
        max_tokens: int = _DEFAULT_MAX_TOKENS,
        json_mode: bool = True,
        **kwargs: Any,
    ) -> None:
        self.model_name = model_name
        self.api_base = api_base
        self.api_key = api_key
        self.request_timeout_s = request_timeout_s
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.json_mode = json_mode
        self.kwargs = kwargs

    def generate(self, prompt: str) -> str:
        """
        Send *prompt* and return the response text.

        Raises ``QuotaOrAuthError`` for 401/403 and ``TransientNetworkError``
        for every other failure, including an empty body.
        """
        completion_kwargs: dict[str, Any] = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "timeout": self.request_timeout_s,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.json_mode:
            completion_kwargs["response_format"] = {"type": "json_object"}
        if self.api_base:
            completion_kwargs["api_base"] = self.api_base
        if self.api_key:
            completion_kwargs["api_key"] = self.api_key
        completion_kwargs.update(self.kwargs)

        try:
            response = completion(**completion_kwargs)
        except Exception as err:
            raise classify_error(err) from err

        content = _extract_content(response)
        if not content.strip():
            raise TransientNetworkError("Generative API returned an empty body.")
        return content
