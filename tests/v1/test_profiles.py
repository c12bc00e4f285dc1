# tests/v1/test_profiles.py
"""Tests for profile endpoints."""


def test_update_own_profile(client, alice) -> None:
    response = client.patch(
        "/api/v1/profiles/me",
        json={"name": "  Alice Liddell ", "default_anonymous": True},
        headers=alice.headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Alice Liddell"
    assert body["default_anonymous"] is True

    cleared = client.patch("/api/v1/profiles/me", json={"name": ""}, headers=alice.headers)
    assert cleared.json()["name"] is None
    assert cleared.json()["default_anonymous"] is True


def test_lookup_by_username(client, alice) -> None:
    response = client.get("/api/v1/profiles/by-username/ALICE")
    assert response.status_code == 200
    assert response.json()["id"] == alice.user_id
    assert "email" not in response.json()

    assert client.get("/api/v1/profiles/by-username/nobody").status_code == 404


def test_profile_update_requires_login(client) -> None:
    assert client.patch("/api/v1/profiles/me", json={"name": "x"}).status_code == 401
