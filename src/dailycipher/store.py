"""Store boundary consumed by the orchestrator, plus an in-process implementation."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping, Sequence
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, Field

from dailycipher.errors import DuplicateDateError
from dailycipher.models import RawRecord


class CompletionRecord(BaseModel):
    """A player's finished attempt at one day's puzzle."""

    date: str
    player_id: str
    solved: bool
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PuzzleStore(Protocol):
    """Key-value store of puzzle rows keyed by calendar date (YYYY-MM-DD)."""

    def exists(self, date_str: str) -> bool: ...

    def get(self, date_str: str) -> RawRecord | None: ...

    def append(self, date_str: str, record: RawRecord) -> None: ...

    def get_recent_answers(self, days: int) -> set[str]: ...

    def get_fallback_pool(self) -> Sequence[Mapping[str, Any]]: ...

    def record_completion(self, date_str: str, player_id: str, solved: bool) -> CompletionRecord: ...

    def get_completions(self, date_str: str) -> list[CompletionRecord]: ...


class InMemoryPuzzleStore:
    """
    In-process, dict-backed puzzle store.
    Rows are write-once; ``append`` refuses to overwrite a date.
    """

    def __init__(
        self,
        fallback_pool: Sequence[Mapping[str, Any]] | None = None,
        today: date | None = None,
    ) -> None:
        self._rows: dict[str, RawRecord] = {}
        self._completions: dict[str, list[CompletionRecord]] = {}
        self._fallback_pool = list(fallback_pool or [])
        self._today = today

    def exists(self, date_str: str) -> bool:
        return date_str in self._rows

    def get(self, date_str: str) -> RawRecord | None:
        row = self._rows.get(date_str)
        return dict(row) if row is not None else None

    def append(self, date_str: str, record: RawRecord) -> None:
        if date_str in self._rows:
            raise DuplicateDateError(f"A puzzle for {date_str} is already stored.")
        self._rows[date_str] = dict(record)

    def get_recent_answers(self, days: int) -> set[str]:
        """Return uppercase answers of rows dated within the last *days* days."""
        today = self._today or datetime.now(timezone.utc).date()
        cutoff = today - timedelta(days=days)
        answers: set[str] = set()
        for date_str, row in self._rows.items():
            try:
                row_date = date.fromisoformat(date_str)
            except ValueError:
                continue
            if row_date < cutoff:
                continue
            for name in ("p1Answer", "p2Answer"):
                value = row.get(name)
                if isinstance(value, str) and value.strip():
                    answers.add(value.strip().upper())
        return answers

    def get_fallback_pool(self) -> Sequence[Mapping[str, Any]]:
        return list(self._fallback_pool)

    def record_completion(self, date_str: str, player_id: str, solved: bool) -> CompletionRecord:
        completion = CompletionRecord(date=date_str, player_id=player_id, solved=solved)
        self._completions.setdefault(date_str, []).append(completion)
        return completion

    def get_completions(self, date_str: str) -> list[CompletionRecord]:
        return list(self._completions.get(date_str, []))


class JsonFilePuzzleStore(InMemoryPuzzleStore):
    """
    ``InMemoryPuzzleStore`` persisted to a single JSON file.

    The file is read once on construction and rewritten atomically after
    every ``append`` and ``record_completion``. A ``fallbackPool`` list in
    the file is used as the secondary pool unless one is passed in.
    """

    def __init__(
        self,
        path: str | Path,
        fallback_pool: Sequence[Mapping[str, Any]] | None = None,
        today: date | None = None,
    ) -> None:
        super().__init__(fallback_pool=fallback_pool, today=today)
        self._path = Path(path)
        if self._path.is_file():
            self._load(keep_pool=fallback_pool is not None)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, date_str: str, record: RawRecord) -> None:
        super().append(date_str, record)
        self._save()

    def record_completion(self, date_str: str, player_id: str, solved: bool) -> CompletionRecord:
        completion = super().record_completion(date_str, player_id, solved)
        self._save()
        return completion

    def _load(self, *, keep_pool: bool) -> None:
        data = json.loads(self._path.read_text(encoding="utf-8"))
        self._rows = {str(day): dict(row) for day, row in data.get("puzzles", {}).items()}
        self._completions = {
            str(day): [CompletionRecord.model_validate(item) for item in items]
            for day, items in data.get("completions", {}).items()
        }
        if not keep_pool:
            self._fallback_pool = [dict(record) for record in data.get("fallbackPool", [])]

    def _save(self) -> None:
        payload = {
            "puzzles": self._rows,
            "completions": {
                day: [item.model_dump(mode="json") for item in items]
                for day, items in self._completions.items()
            },
            "fallbackPool": [dict(record) for record in self._fallback_pool],
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self._path)
