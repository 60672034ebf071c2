import pytest
import requests

from bizscout.core.config import ConfigError, Settings
from bizscout.jobs import search_server
from bizscout.jobs.search import SearchOutcome
from bizscout.models import Business


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(search_server, "get_settings", lambda: Settings(gemini_api_key="k", grid_size=2))
    return search_server.app.test_client()


def test_health_endpoint(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_normalize_validates_payload(client):
    assert client.post("/normalize", json={}).status_code == 400
    assert client.post("/normalize", json={"raw_text": "[]", "industry": "coffee"}).status_code == 400
    assert client.post("/normalize", json={"raw_text": 5, "industry": "coffee", "location": "D1"}).status_code == 400


def test_normalize_returns_records(client):
    payload = {
        "raw_text": '```json\n[{"name":"Cafe A","lat":10.77,"lng":106.70,"rating":4.5}]\n```',
        "industry": "coffee",
        "location": "D1",
        "cross_refs": [{"title": "Cafe A", "uri": "https://maps/a"}],
    }
    response = client.post("/normalize", json=payload)

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["recovered"] is True
    assert data["businesses"][0]["name"] == "Cafe A"
    assert data["businesses"][0]["googleMapsUri"] == "https://maps/a"
    assert data["businesses"][0]["reviewCount"] == 0


def test_normalize_unparsable_is_flagged(client):
    response = client.post("/normalize", json={"raw_text": "no data available", "industry": "coffee", "location": "D1"})
    assert response.status_code == 200
    assert response.get_json()["data"] == {"businesses": [], "recovered": False}


def test_density_uses_default_grid_and_filters_points(client):
    payload = {"points": [{"lat": 10.0, "lng": 106.0}, {"lat": 10.0, "lng": 106.0}, {"lat": 10.1, "lng": 106.1}, {"lat": 0, "lng": 0}]}
    response = client.post("/density", json=payload)

    assert response.status_code == 200
    cells = response.get_json()["data"]["cells"]
    assert sorted((c["count"], c["level"]) for c in cells) == [(1, "moderate"), (2, "saturated")]


def test_density_validates_payload(client):
    assert client.post("/density", json={}).status_code == 400
    assert client.post("/density", json={"points": [], "grid_size": 0}).status_code == 400
    assert client.post("/density", json={"points": [], "grid_size": "bad"}).status_code == 400
    assert client.post("/density", json={"points": [], "grid_size": 2.5}).status_code == 400
    assert client.post("/density", json={"points": [], "grid_size": True}).status_code == 400
    assert client.post("/density", json={"points": [], "grid_size": 4.0}).status_code == 200
    response = client.post("/density", json={"points": [], "grid_size": 4})
    assert response.status_code == 200
    assert response.get_json()["data"]["cells"] == []


def test_stats_endpoint(client):
    businesses = [
        {"id": "biz-1", "name": "A", "rating": 4.5, "phone": "1"},
        {"id": "biz-2", "name": "B", "rating": 2.0, "website": "https://b"},
    ]
    response = client.post("/stats", json={"businesses": businesses, "min_rating": 3})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["total"] == 2
    assert data["withPhone"] == 1
    assert data["withWebsite"] == 1
    assert data["filteredTotal"] == 1

    assert client.post("/stats", json={"businesses": []}).get_json()["data"] is None
    assert client.post("/stats", json={}).status_code == 400
    assert client.post("/stats", json={"businesses": [], "min_rating": "x"}).status_code == 400


def test_search_validates_payload(client):
    assert client.post("/search", json={}).status_code == 400
    assert client.post("/search", json={"industry": "coffee"}).status_code == 400
    assert client.post("/search", json={"industry": "coffee", "location": "D1", "exclude_names": "A"}).status_code == 400


def test_search_returns_done_status(client, monkeypatch):
    captured = {}

    def fake_run_search(industry, location, language=None, exclude_names=()):
        captured.update(industry=industry, location=location, language=language, exclude_names=exclude_names)
        return SearchOutcome(
            businesses=[Business(id="biz-1", name="Cafe A", address="D1", google_maps_uri="https://maps/a")],
            recovered=True,
        )

    monkeypatch.setattr(search_server, "run_search", fake_run_search)
    response = client.post(
        "/search",
        json={"industry": "coffee", "location": "D1", "language": "en", "exclude_names": ["Cafe Z"]},
    )

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["status"] == "done"
    assert data["recovered"] is True
    assert data["businesses"][0]["id"] == "biz-1"
    assert captured == {"industry": "coffee", "location": "D1", "language": "en", "exclude_names": ["Cafe Z"]}


@pytest.mark.parametrize(
    "error, status",
    [
        (requests.ConnectionError("down"), 502),
        (ConfigError("missing key"), 503),
        (ValueError("industry and location are required"), 400),
    ],
)
def test_search_maps_errors(client, monkeypatch, error, status):
    def failing_run_search(*args, **kwargs):
        raise error

    monkeypatch.setattr(search_server, "run_search", failing_run_search)
    response = client.post("/search", json={"industry": "coffee", "location": "D1"})
    assert response.status_code == status
