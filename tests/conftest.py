from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Generator, Optional

import pytest
from fastapi.testclient import TestClient

from homeaway.deps import get_storage
from homeaway.main import app
from homeaway.rate_limit import RateLimiter, get_rate_limiter
from homeaway.storage import InMemoryStorage


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def limiter() -> RateLimiter:
    return RateLimiter()


@pytest.fixture
def client(storage: InMemoryStorage, limiter: RateLimiter) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def identity_headers(user_id: str, ip: Optional[str] = None) -> dict[str, str]:
    return {
        "X-User-Id": user_id,
        "X-User-Email": f"{user_id}@example.com",
        "X-Forwarded-For": ip or f"client-{user_id}",
    }


def days_from_today(days: int) -> str:
    return (datetime.now(timezone.utc).date() + timedelta(days=days)).isoformat()


@pytest.fixture
def create_profile(client: TestClient) -> Callable[[str], dict]:
    def _create(user_id: str) -> dict:
        response = client.post(
            "/v1/profile",
            json={"username": user_id, "first_name": "Test", "last_name": "User"},
            headers=identity_headers(user_id),
        )
        assert response.status_code == 201
        return response.json()

    return _create


@pytest.fixture
def create_property(client: TestClient, create_profile: Callable[[str], dict]) -> Callable[..., dict]:
    def _create(owner_id: str = "host", price: float = 100) -> dict:
        create_profile(owner_id)
        response = client.post(
            "/v1/properties",
            json={
                "name": "Beach House",
                "tagline": "Steps from the sand",
                "category": "cabin",
                "country": "PT",
                "description": "A quiet house right next to the beach.",
                "price": price,
            },
            headers=identity_headers(owner_id),
        )
        assert response.status_code == 201
        return response.json()

    return _create
