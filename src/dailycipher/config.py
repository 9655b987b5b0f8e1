"""Runtime settings read from the environment and a local .env file."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "DAILYCIPHER_"

_DOTENV_LOADED = False


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#"):
        return None
    line = line.removeprefix("export ").strip()
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
        return None

    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        value = value[1:-1]
    return key, value


def _nearest_env_file(start: Path) -> Path | None:
    for base in (start, *start.parents):
        candidate = base / ".env"
        if candidate.is_file():
            return candidate
    return None


def load_dotenv(*, override: bool = False) -> None:
    """Copy the nearest .env file into ``os.environ`` once per process."""
    global _DOTENV_LOADED
    if _DOTENV_LOADED and not override:
        return
    _DOTENV_LOADED = True

    env_path = _nearest_env_file(Path.cwd())
    if env_path is None:
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        parsed = _parse_env_line(raw_line)
        if parsed is None:
            continue
        key, value = parsed
        if override or key not in os.environ:
            os.environ[key] = value


class GeneratorSettings(BaseModel):
    """Tunables for the AI tier and the orchestrator."""

    model_config = ConfigDict(protected_namespaces=())

    model_name: str = "gpt-4o-mini"
    api_base: str | None = None
    api_key: str | None = None
    timeout_s: float = Field(default=30.0, gt=0.0, le=600.0)
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1024, gt=0, le=32768)
    max_attempts: int = Field(default=3, ge=1, le=10)
    base_delay_s: float = Field(default=1.0, ge=0.0)
    max_delay_s: float = Field(default=8.0, ge=0.0)
    exclusion_days: int = Field(default=30, ge=0)
    ai_enabled: bool = True

    @classmethod
    def from_env(cls) -> GeneratorSettings:
        """Build settings from ``DAILYCIPHER_*`` variables after loading .env."""
        load_dotenv()
        values: dict[str, str] = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls.model_validate(values)
