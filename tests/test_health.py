# tests/test_health.py
from fastapi.testclient import TestClient


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_root_describes_api(client: TestClient) -> None:
    body = client.get("/").json()
    assert body["name"] == "VibeSphere API"
    assert body["docs"] == "/docs"
