from __future__ import annotations

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from dailycipher.cipher.engine import encode
from dailycipher.generator.models import GenerationOutcome
from dailycipher.generator.service import ContentRequester
from dailycipher.ledger import MetricsLedger
from dailycipher.main import create_app
from dailycipher.models import GenerationMetrics, PuzzleSource
from dailycipher.orchestrator.models import OrchestrationResult
from dailycipher.orchestrator.service import FallbackOrchestrator
from dailycipher.pools import EMERGENCY_PUZZLE
from dailycipher.store import InMemoryPuzzleStore

DATE = "2025-07-26"


@pytest.fixture
def store() -> InMemoryPuzzleStore:
    return InMemoryPuzzleStore()


@pytest.fixture
def ledger() -> MetricsLedger:
    return MetricsLedger()


def _client(store: InMemoryPuzzleStore, ledger: MetricsLedger, requester: Mock | None = None) -> TestClient:
    orchestrator = FallbackOrchestrator(store=store, requester=requester)
    return TestClient(create_app(store=store, orchestrator=orchestrator, ledger=ledger))


def test_generate_stores_fallback_puzzle(store: InMemoryPuzzleStore, ledger: MetricsLedger) -> None:
    client = _client(store, ledger)

    response = client.post("/generate", json={"date": DATE})

    assert response.status_code == 200
    body = response.json()
    assert body["created"] is True
    assert body["source"] == "static-fallback"
    assert [tier["tier"] for tier in body["tiers"]] == ["ai", "secondary_pool", "static_pool"]
    puzzle = body["puzzle"]
    assert puzzle["date"] == DATE
    assert puzzle["p3Answer"] == encode(puzzle["p2Answer"], puzzle["cipherType"])
    assert store.get(DATE) == puzzle
    assert len(ledger.read()) == 1


def test_generate_is_idempotent(store: InMemoryPuzzleStore, ledger: MetricsLedger) -> None:
    client = _client(store, ledger)
    first = client.post("/generate", json={"date": DATE}).json()

    second = client.post("/generate", json={"date": DATE})

    assert second.status_code == 200
    body = second.json()
    assert body["created"] is False
    assert body["source"] is None
    assert body["puzzle"] == first["puzzle"]
    assert len(ledger.read()) == 1


def test_generate_uses_ai_tier(store: InMemoryPuzzleStore, ledger: MetricsLedger) -> None:
    requester = Mock(spec=ContentRequester)
    ai_puzzle = EMERGENCY_PUZZLE.model_copy(update={"source": PuzzleSource.ai})
    requester.request_puzzle.return_value = GenerationOutcome(success=True, puzzle=ai_puzzle)
    client = _client(store, ledger, requester)

    body = client.post("/generate", json={"date": DATE}).json()

    assert body["source"] == "ai"
    assert body["puzzle"]["p1Answer"] == "HELLO"
    requester.request_puzzle.assert_called_once()


def test_generate_rejects_bad_date(store: InMemoryPuzzleStore, ledger: MetricsLedger) -> None:
    response = _client(store, ledger).post("/generate", json={"date": "26/07/2025"})
    assert response.status_code == 422


def test_get_puzzle(store: InMemoryPuzzleStore, ledger: MetricsLedger) -> None:
    client = _client(store, ledger)
    assert client.get(f"/puzzle/{DATE}").status_code == 404

    client.post("/generate", json={"date": DATE})
    response = client.get(f"/puzzle/{DATE}")

    assert response.status_code == 200
    assert response.json()["date"] == DATE


def test_record_completion(store: InMemoryPuzzleStore, ledger: MetricsLedger) -> None:
    client = _client(store, ledger)
    missing = client.post(f"/puzzle/{DATE}/completion", json={"player_id": "p1", "solved": True})
    assert missing.status_code == 404

    client.post("/generate", json={"date": DATE})
    response = client.post(f"/puzzle/{DATE}/completion", json={"player_id": "p1", "solved": True})

    assert response.status_code == 200
    assert response.json()["player_id"] == "p1"
    assert [c.player_id for c in store.get_completions(DATE)] == ["p1"]


def test_metrics_endpoint(store: InMemoryPuzzleStore, ledger: MetricsLedger) -> None:
    client = _client(store, ledger)
    client.post("/generate", json={"date": DATE})
    client.post("/generate", json={"date": "2025-07-27"})

    body = client.get("/metrics").json()

    assert body["runs"] == 2
    assert body["ai_success_rate"] == 0.0
    assert body["totals"]["fallback_uses"] == 2
    assert body["totals"]["by_source"] == {"static-fallback": 2}


class _RacingOrchestrator:
    """Stores a row for the date while generating, like a concurrent request would."""

    def __init__(self, store: InMemoryPuzzleStore, row: dict[str, object]) -> None:
        self._store = store
        self._row = row
        self._inner = FallbackOrchestrator(store=store)

    def generate(self, date_str: str, metrics: GenerationMetrics | None = None) -> OrchestrationResult:
        result = self._inner.generate(date_str, metrics)
        self._store.append(date_str, self._row)
        return result


def test_generate_race_returns_stored_row(store: InMemoryPuzzleStore, ledger: MetricsLedger) -> None:
    winner = EMERGENCY_PUZZLE.model_copy(update={"date": DATE}).to_record()
    app = create_app(store=store, orchestrator=_RacingOrchestrator(store, winner), ledger=ledger)  # type: ignore[arg-type]

    response = TestClient(app).post("/generate", json={"date": DATE})

    assert response.status_code == 200
    body = response.json()
    assert body["created"] is False
    assert body["puzzle"] == winner
    assert store.get(DATE) == winner


def test_list_completions(store: InMemoryPuzzleStore, ledger: MetricsLedger) -> None:
    client = _client(store, ledger)
    assert client.get(f"/puzzle/{DATE}/completions").status_code == 404

    client.post("/generate", json={"date": DATE})
    client.post(f"/puzzle/{DATE}/completion", json={"player_id": "p1", "solved": True})
    client.post(f"/puzzle/{DATE}/completion", json={"player_id": "p2", "solved": False})
    response = client.get(f"/puzzle/{DATE}/completions")

    assert response.status_code == 200
    assert [(c["player_id"], c["solved"]) for c in response.json()] == [("p1", True), ("p2", False)]
