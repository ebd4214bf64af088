from __future__ import annotations

from typing import Callable

from fastapi.testclient import TestClient

from conftest import days_from_today, identity_headers
from homeaway.storage import InMemoryStorage


def _book(client: TestClient, user_id: str, property_id: str, check_in: int, check_out: int):
    return client.post(
        "/v1/bookings",
        json={
            "property_id": property_id,
            "check_in": days_from_today(check_in),
            "check_out": days_from_today(check_out),
        },
        headers=identity_headers(user_id),
    )


def test_creates_booking_with_totals(
    client: TestClient, create_profile: Callable[[str], dict], create_property: Callable[..., dict]
) -> None:
    prop = create_property(price=100)
    create_profile("guest")

    response = _book(client, "guest", prop["id"], 10, 13)

    assert response.status_code == 201
    body = response.json()
    assert body["profile_id"] == "guest"
    assert body["total_nights"] == 3
    assert body["order_total"] == 391
    assert response.headers["X-RateLimit-Limit"] == "10"
    assert response.headers["X-RateLimit-Remaining"] == "9"


def test_rejects_overlapping_booking(
    client: TestClient, create_profile: Callable[[str], dict], create_property: Callable[..., dict]
) -> None:
    prop = create_property()
    create_profile("guest")
    create_profile("other")
    assert _book(client, "guest", prop["id"], 10, 14).status_code == 201

    conflict = _book(client, "other", prop["id"], 12, 16)

    assert conflict.status_code == 400
    assert conflict.json()["error"]["code"] == "VALIDATION_ERROR"


def test_adjacent_booking_is_allowed(
    client: TestClient, create_profile: Callable[[str], dict], create_property: Callable[..., dict]
) -> None:
    prop = create_property()
    create_profile("guest")
    assert _book(client, "guest", prop["id"], 10, 14).status_code == 201

    assert _book(client, "guest", prop["id"], 14, 16).status_code == 201


def test_rejects_checkout_before_checkin(
    client: TestClient, create_profile: Callable[[str], dict], create_property: Callable[..., dict]
) -> None:
    prop = create_property()
    create_profile("guest")

    response = _book(client, "guest", prop["id"], 12, 12)

    assert response.status_code == 400
    assert response.json()["error"] == {
        "code": "VALIDATION_ERROR",
        "message": "Check-out date must be after check-in date",
        "field": "check_out",
    }


def test_rejects_past_checkin(
    client: TestClient, create_profile: Callable[[str], dict], create_property: Callable[..., dict]
) -> None:
    prop = create_property()
    create_profile("guest")

    response = _book(client, "guest", prop["id"], -3, 2)

    assert response.status_code == 400
    assert response.json()["error"]["field"] == "check_in"


def test_booking_requires_identity(client: TestClient, create_property: Callable[..., dict]) -> None:
    prop = create_property()

    response = client.post(
        "/v1/bookings",
        json={"property_id": prop["id"], "check_in": days_from_today(5), "check_out": days_from_today(6)},
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"


def test_booking_requires_profile(client: TestClient, create_property: Callable[..., dict]) -> None:
    prop = create_property()

    response = _book(client, "no-profile", prop["id"], 5, 6)

    assert response.status_code == 403
    assert response.json()["error"]["message"] == "Please create a profile first"


def test_booking_unknown_property(client: TestClient, create_profile: Callable[[str], dict]) -> None:
    create_profile("guest")

    response = _book(client, "guest", "property_missing", 5, 6)

    assert response.status_code == 404
    assert response.headers["X-RateLimit-Limit"] == "10"
    assert response.headers["X-RateLimit-Remaining"] == "9"


def test_list_and_cancel_own_bookings(
    client: TestClient,
    storage: InMemoryStorage,
    create_profile: Callable[[str], dict],
    create_property: Callable[..., dict],
) -> None:
    prop = create_property()
    create_profile("guest")
    create_profile("other")
    booking = _book(client, "guest", prop["id"], 20, 22).json()

    listed = client.get("/v1/bookings", headers=identity_headers("guest"))
    assert [item["id"] for item in listed.json()] == [booking["id"]]
    assert client.get("/v1/bookings", headers=identity_headers("other")).json() == []

    forbidden = client.delete(f"/v1/bookings/{booking['id']}", headers=identity_headers("other"))
    assert forbidden.status_code == 404

    cancelled = client.delete(f"/v1/bookings/{booking['id']}", headers=identity_headers("guest"))
    assert cancelled.status_code == 204
    assert storage.get_booking(booking["id"]) is None


def test_calendar_blocks_booked_days(
    client: TestClient, create_profile: Callable[[str], dict], create_property: Callable[..., dict]
) -> None:
    prop = create_property()
    create_profile("guest")
    _book(client, "guest", prop["id"], 10, 12)

    response = client.get(f"/v1/properties/{prop['id']}/calendar")

    assert response.status_code == 200
    body = response.json()
    assert len(body["blocked_periods"]) == 2
    assert body["blocked_periods"][0]["from"] == "1970-01-01"
    assert body["blocked_periods"][1] == {"from": days_from_today(10), "to": days_from_today(12)}
    assert set(body["disabled_dates"]) == {days_from_today(10), days_from_today(11), days_from_today(12)}


def test_quote_with_and_without_dates(client: TestClient, create_property: Callable[..., dict]) -> None:
    prop = create_property(price=150)

    partial = client.get(f"/v1/properties/{prop['id']}/quote", params={"check_in": days_from_today(3)})
    assert partial.json() == {
        "total_nights": 0,
        "sub_total": 0,
        "cleaning": 21,
        "service": 40,
        "tax": 0,
        "order_total": 61,
    }

    full = client.get(
        f"/v1/properties/{prop['id']}/quote",
        params={"check_in": days_from_today(3), "check_out": days_from_today(4)},
    )
    assert full.json()["order_total"] == 226


def test_quote_rejects_reversed_dates(client: TestClient, create_property: Callable[..., dict]) -> None:
    prop = create_property()

    response = client.get(
        f"/v1/properties/{prop['id']}/quote",
        params={"check_in": days_from_today(6), "check_out": days_from_today(3)},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_booking_rate_limit_returns_429(
    client: TestClient, create_profile: Callable[[str], dict], create_property: Callable[..., dict]
) -> None:
    prop = create_property()
    create_profile("guest")
    for offset in range(10):
        response = _book(client, "guest", prop["id"], 30 + offset * 2, 31 + offset * 2)
        assert response.status_code == 201

    blocked = _book(client, "guest", prop["id"], 60, 61)

    assert blocked.status_code == 429
    assert blocked.json() == {
        "error": {"code": "RATE_LIMIT_EXCEEDED", "message": "Too many requests. Please try again later."}
    }
    assert blocked.headers["X-RateLimit-Remaining"] == "0"
    assert int(blocked.headers["Retry-After"]) > 0
