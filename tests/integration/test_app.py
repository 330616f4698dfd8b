"""
Integration tests for the tinylink HTTP API (FastAPI TestClient, in-memory storage).
"""

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from main import create_app
from tinylink.storage.storage import Storage


def _parse(ts: str) -> datetime:
    return datetime.fromisoformat(ts.replace("Z", "+00:00"))


def test_create_link_random_code(client):
    response = client.post("/api/links", json={"url": "https://example.com"})
    assert response.status_code == 201
    data = response.json()
    assert set(data) == {"id", "code", "target_url", "clicks", "last_clicked_at", "created_at", "expires_at"}
    assert data["target_url"] == "https://example.com"
    assert data["clicks"] == 0
    assert data["last_clicked_at"] is None
    assert 6 <= len(data["code"]) <= 8


def test_create_defaults_to_thirty_days(client):
    data = client.post("/api/links", json={"url": "https://example.com"}).json()
    delta = _parse(data["expires_at"]) - _parse(data["created_at"])
    assert abs(delta - timedelta(days=30)) < timedelta(seconds=5)


def test_create_with_fifteen_days_then_redirect(client):
    """Create(expiryDays=15) -> expires in ~15 days; redirect -> 302 and clicks == 1."""
    created = client.post("/api/links", json={"url": "https://example.com", "expiryDays": 15}).json()
    expected = datetime.now(timezone.utc) + timedelta(days=15)
    assert abs(_parse(created["expires_at"]) - expected) < timedelta(seconds=5)

    redirect = client.get(f"/{created['code']}")
    assert redirect.status_code == 302
    assert redirect.headers["location"] == "https://example.com"

    stats = client.get(f"/api/links/{created['code']}").json()
    assert stats["clicks"] == 1
    assert stats["last_clicked_at"] is not None


def test_create_never_expires(client):
    for payload in ({"url": "https://example.com", "expiryDays": 0},
                    {"url": "https://example.com", "expiryDays": None}):
        data = client.post("/api/links", json=payload).json()
        assert data["expires_at"] is None


def test_create_custom_code(client):
    response = client.post("/api/links", json={"url": "https://example.com", "code": "Docs2024"})
    assert response.status_code == 201
    assert response.json()["code"] == "Docs2024"
    assert client.get("/Docs2024").headers["location"] == "https://example.com"


def test_create_custom_code_twice_conflicts(client):
    assert client.post("/api/links", json={"url": "https://a.com", "code": "same01"}).status_code == 201
    response = client.post("/api/links", json={"url": "https://b.com", "code": "same01"})
    assert response.status_code == 409
    assert response.json() == {"error": "Code already exists"}


def test_create_invalid_code(client):
    response = client.post("/api/links", json={"url": "https://example.com", "code": "no"})
    assert response.status_code == 400
    assert "6-8 alphanumeric" in response.json()["error"]


def test_create_invalid_url(client):
    response = client.post("/api/links", json={"url": "ftp://example.com"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid URL format"}


def test_list_links_newest_first(client):
    for code in ("first1", "second", "third3"):
        client.post("/api/links", json={"url": f"https://{code}.com", "code": code})
    response = client.get("/api/links")
    assert response.status_code == 200
    assert [item["code"] for item in response.json()] == ["third3", "second", "first1"]


def test_list_links_empty(client):
    assert client.get("/api/links").json() == []


def test_stats(client):
    client.post("/api/links", json={"url": "https://example.com", "code": "stats1"})
    client.get("/stats1")
    client.get("/stats1")
    data = client.get("/api/links/stats1").json()
    assert data["code"] == "stats1"
    assert data["clicks"] == 2


def test_delete_then_redirect_404(client):
    client.post("/api/links", json={"url": "https://example.com", "code": "bye123"})
    response = client.delete("/api/links/bye123")
    assert response.status_code == 200
    assert response.json() == {"message": "Link deleted successfully"}
    assert client.get("/bye123").status_code == 404
    assert client.get("/api/links/bye123").status_code == 404


def test_sweep_endpoint_open_without_secret(client):
    response = client.get("/api/cron/cleanup")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["deletedCount"] == 0
    assert _parse(data["timestamp"])


def test_sweep_endpoint_requires_configured_secret(monkeypatch):
    monkeypatch.setenv("CRON_SECRET", "s3cret")
    client = TestClient(create_app(storage=Storage()), follow_redirects=False)

    assert client.get("/api/cron/cleanup").status_code == 401
    bad = client.get("/api/cron/cleanup", headers={"Authorization": "Bearer nope"})
    assert bad.status_code == 401
    assert bad.json() == {"error": "Unauthorized"}

    ok = client.get("/api/cron/cleanup", headers={"Authorization": "Bearer s3cret"})
    assert ok.status_code == 200


def test_sweep_endpoint_deletes_expired(clock):
    storage = Storage(clock=clock)
    storage.insert_link("AAAAAA", "https://a.com", clock.now - timedelta(days=1))
    storage.insert_link("BBBBBB", "https://b.com", clock.now + timedelta(days=1))
    storage.insert_link("CCCCCC", "https://c.com", None)
    client = TestClient(create_app(storage=storage, clock=clock), follow_redirects=False)

    response = client.get("/api/cron/cleanup")
    assert response.json()["deletedCount"] == 1
    assert _parse(response.json()["timestamp"]) == clock.now
    codes = {item["code"] for item in client.get("/api/links").json()}
    assert codes == {"BBBBBB", "CCCCCC"}


def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["backend"] == "Storage"


def test_injected_code_generator_is_used():
    codes = iter(["fixed1"])
    client = TestClient(create_app(storage=Storage(), code_generator=lambda: next(codes)))
    assert client.post("/api/links", json={"url": "https://example.com"}).json()["code"] == "fixed1"
