# tests/conftest.py
from __future__ import annotations

import pytest

TEST_SECRET = "test-signing-secret"


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path, monkeypatch):
    monkeypatch.setenv("NEWS_DB_PATH", str(tmp_path / "test.db"))
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.delenv("ALLOW_INSECURE_DEV_SECRET", raising=False)
    monkeypatch.delenv("NEWS_API_KEY", raising=False)
    monkeypatch.delenv("JWT_EXPIRES_MINUTES", raising=False)


@pytest.fixture(autouse=True)
def _reset_news_cache():
    """The feed cache is process-wide; start every test empty."""
    from src.news import news_cache

    news_cache.clear()
    yield
    news_cache.clear()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from src.main import app

    return TestClient(app)


def signup_and_login(client, *, email="a@x.com", password="pw123456", name="A", preferences=None):
    """
    Helper: register a user through the API and return an Authorization header.
    """
    body = {"name": name, "email": email, "password": password}
    if preferences is not None:
        body["preferences"] = preferences
    resp = client.post("/users/signup", json=body)
    assert resp.status_code == 201, f"Signup failed: {resp.text}"

    resp = client.post("/users/login", json={"email": email, "password": password})
    assert resp.status_code == 200, f"Login failed: {resp.text}"

    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def auth_headers(client):
    """Fixture that returns headers for a logged-in user with no preferences."""
    return signup_and_login(client)
