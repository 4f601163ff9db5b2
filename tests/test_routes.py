"""HTTP boundary tests: request shape, payload keys and error-kind status mapping."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from src.api.routes import _get_engine
from src.api.schemas import EnrichmentResult
from src.enrichment.errors import (
    AiUnavailable,
    EmptyContent,
    FetchTimeout,
    InternalError,
    InvalidUrl,
    RequestTimeout,
    TooManyRedirects,
    Unreachable,
)
from src.main import app

RESULT = EnrichmentResult(
    summary="Acme provides payment infrastructure.",
    what_they_do=["Payments", "Payouts", "Billing"],
    keywords=["payments", "fintech", "api", "billing", "saas"],
    signals=["Actively hiring (careers page found)"],
    sources=["/", "/careers"],
    timestamp="2026-01-01T00:00:00+00:00",
)


@pytest.fixture
def engine() -> MagicMock:
    engine = MagicMock()
    engine.run = AsyncMock(return_value=RESULT)
    return engine


@pytest.fixture
def client(engine: MagicMock):
    app.dependency_overrides[_get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestEnrichRoute:
    def test_success_payload(self, client: TestClient, engine: MagicMock) -> None:
        resp = client.post("/enrich", json={"website": "stripe.com"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["whatTheyDo"] == ["Payments", "Payouts", "Billing"]
        assert set(body) == {"summary", "whatTheyDo", "keywords", "signals", "sources", "timestamp"}
        engine.run.assert_awaited_once_with("stripe.com")

    def test_missing_website_is_422(self, client: TestClient) -> None:
        resp = client.post("/enrich", json={})
        assert resp.status_code == 422

    @pytest.mark.parametrize(
        ("error", "status", "kind"),
        [
            (InvalidUrl(), 400, "InvalidUrl"),
            (Unreachable(upstream_status=500), 404, "Unreachable"),
            (TooManyRedirects(), 404, "TooManyRedirects"),
            (FetchTimeout(), 504, "Timeout"),
            (RequestTimeout(), 504, "RequestTimeout"),
            (AiUnavailable(), 500, "AiUnavailable"),
            (EmptyContent(), 500, "EmptyContent"),
            (InternalError(), 500, "Internal"),
        ],
    )
    def test_error_mapping(self, client: TestClient, engine: MagicMock, error, status, kind) -> None:
        engine.run.side_effect = error
        resp = client.post("/enrich", json={"website": "stripe.com"})
        assert resp.status_code == status
        assert resp.json() == {"error": kind, "message": error.message}


def test_health() -> None:
    resp = TestClient(app).get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_lifespan_builds_one_shared_engine() -> None:
    with patch("src.main.EnrichmentEngine") as engine_cls, patch("src.main.setup_logging") as setup:
        with TestClient(app) as client:
            assert client.app.state.engine is engine_cls.return_value
            client.get("/health")
    engine_cls.assert_called_once()
    setup.assert_called_once()
