import pytest
from starlette.testclient import TestClient

from snowscore.api.app import app
from snowscore.catalog.loader import load_destinations
from tests.helpers import StubRoutesClient, build_test_engine


@pytest.fixture
def client(settings, cache, monkeypatch):
    engine = build_test_engine(settings, cache, load_destinations(), StubRoutesClient(default=50))
    monkeypatch.setattr("snowscore.api.routes.get_engine", lambda: engine)
    return TestClient(app)


def test_ingest_then_recommend(client):
    resp = client.post(
        "/api/conditions",
        json={
            "records": [
                {"name": "Engelberg Titlis", "mountain_depth": "90 cm", "new_snow": 5, "lifts": "10/25"},
                {"name": "Obergoms - Goms", "mountain_depth": 40, "lifts_open": 2, "lifts_total": 4},
                {"name": ""},
            ]
        },
    )
    assert resp.status_code == 200
    summary = resp.json()
    assert (summary["stored"], summary["unmapped"], summary["skipped"]) == (2, 1, 1)

    resp = client.get("/api/recommendations", params={"max_travel_minutes": 120, "min_score": 0})
    assert resp.status_code == 200
    data = resp.json()
    assert data["funnel"]["total_considered"] == 2
    assert data["items"][0]["destination"]["id"] == "engelberg-titlis"
    assert data["items"][0]["travel"]["duration_minutes"] == 50


def test_invalid_query_is_rejected(client):
    resp = client.get("/api/recommendations", params={"limit": 0})
    assert resp.status_code == 422


def test_destination_details_and_not_found(client):
    resp = client.get("/api/destinations/hoch-ybrig")
    assert resp.status_code == 200
    assert resp.json()["result"]["status"] == "CLOSED"

    resp = client.get("/api/destinations/nowhere-peak")
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "NOT_FOUND"


def test_closed_destinations_and_stats(client):
    resp = client.get("/api/destinations/closed")
    assert resp.status_code == 200
    assert [i["destination"]["id"] for i in resp.json()] == ["hoch-ybrig", "flumserberg"]

    resp = client.get("/api/stats")
    assert resp.status_code == 200
    assert resp.json()["destinations"] == 15


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
