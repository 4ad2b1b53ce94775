import uuid
from decimal import Decimal


def test_booking_flow(client, catalog, auth_headers):
    customer = auth_headers(catalog.customer_token)
    admin = auth_headers(catalog.admin_token)

    payload = {
        "schedule_id": catalog.schedule_id,
        "seat_ids": [catalog.seat_ids["A2"], catalog.seat_ids["A1"]],
    }
    response = client.post("/api/booking", json=payload, headers=customer)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] is True
    assert body["message"] == "success"
    booking = body["data"]
    assert booking["status"] == "pending"
    assert booking["seat_numbers"] == ["A1", "A2"]
    assert Decimal(str(booking["total_price"])) == Decimal("100000")

    seats = client.get(f"/api/schedules/{catalog.schedule_id}/seats").json()["data"]
    taken = {seat["seat_number"] for seat in seats["seats"] if not seat["is_available"]}
    assert taken == {"A1", "A2"}

    pay_response = client.post(
        "/api/pay",
        json={
            "booking_id": booking["id"],
            "payment_method_id": catalog.payment_method_id,
            "amount": "100000",
            "transaction_id": "TXN-42",
        },
        headers=customer,
    )
    assert pay_response.status_code == 200
    assert pay_response.json()["data"]["status"] == "completed"

    listing = client.get("/api/user/bookings", headers=customer).json()["data"]
    assert listing["pagination"]["total"] == 1
    assert listing["data"][0]["status"] == "confirmed"
    assert listing["data"][0]["payment"]["transaction_id"] == "TXN-42"

    detail = client.get(f"/api/admin/bookings/{booking['id']}", headers=admin)
    assert detail.status_code == 200
    assert detail.json()["data"]["schedule_details"]["movie_title"] == "The Last Projectionist"

    cancel = client.put(f"/api/admin/bookings/{booking['id']}/cancel", headers=admin)
    assert cancel.status_code == 200
    assert cancel.json()["data"]["status"] == "cancelled"

    seats = client.get(f"/api/schedules/{catalog.schedule_id}/seats").json()["data"]
    assert all(seat["is_available"] for seat in seats["seats"])


def test_double_booking_returns_conflict(client, catalog, auth_headers):
    payload = {
        "schedule_id": catalog.schedule_id,
        "seat_ids": [catalog.seat_ids["A1"]],
    }
    first = client.post("/api/booking", json=payload, headers=auth_headers(catalog.customer_token))
    assert first.status_code == 201

    second = client.post("/api/booking", json=payload, headers=auth_headers(catalog.other_token))
    assert second.status_code == 409
    assert second.json() == {
        "status": False,
        "message": "seat A1 is already booked",
        "error": "conflict",
    }


def test_booking_requires_authentication(client, catalog, auth_headers):
    payload = {
        "schedule_id": catalog.schedule_id,
        "seat_ids": [catalog.seat_ids["A1"]],
    }

    missing = client.post("/api/booking", json=payload)
    assert missing.status_code == 401
    assert missing.json()["message"] == "Missing authorization token"

    malformed = client.post(
        "/api/booking",
        json=payload,
        headers={"Authorization": f"Token {catalog.customer_token}"},
    )
    assert malformed.status_code == 401
    assert malformed.json()["message"] == "Invalid token format. Use: Bearer <token>"

    unknown = client.post("/api/booking", json=payload, headers=auth_headers("nope"))
    assert unknown.status_code == 401
    assert unknown.json()["message"] == "Invalid or expired session"


def test_admin_routes_reject_customers(client, catalog, auth_headers):
    response = client.post(
        "/api/admin/bookings/expire",
        headers=auth_headers(catalog.customer_token),
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Admin access required"

    response = client.post(
        "/api/admin/bookings/expire",
        headers=auth_headers(catalog.admin_token),
    )
    assert response.status_code == 200
    assert response.json()["data"] == {"expired_count": 0, "booking_ids": []}


def test_invalid_booking_body_returns_validation_envelope(client, catalog, auth_headers):
    response = client.post(
        "/api/booking",
        json={"schedule_id": catalog.schedule_id, "seat_ids": []},
        headers=auth_headers(catalog.customer_token),
    )

    assert response.status_code == 400
    body = response.json()
    assert body["status"] is False
    assert body["error"] == "validation"
    assert body["message"] == "Validation failed"
    assert body["errors"][0]["field"] == "seat_ids"


def test_unknown_schedule_returns_not_found(client, auth_headers, catalog):
    response = client.get(f"/api/schedules/{uuid.uuid4()}/seats")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_paying_for_another_users_booking_is_forbidden(client, catalog, auth_headers):
    created = client.post(
        "/api/booking",
        json={"schedule_id": catalog.schedule_id, "seat_ids": [catalog.seat_ids["A5"]]},
        headers=auth_headers(catalog.customer_token),
    ).json()["data"]

    response = client.post(
        "/api/pay",
        json={
            "booking_id": created["id"],
            "payment_method_id": catalog.payment_method_id,
            "amount": "50000",
        },
        headers=auth_headers(catalog.other_token),
    )

    assert response.status_code == 403
    assert response.json()["error"] == "unauthorized"


def test_payment_methods_are_public(client, catalog):
    response = client.get("/api/payment-methods")

    assert response.status_code == 200
    assert [m["name"] for m in response.json()["data"]] == ["Credit Card"]


def test_health(client):
    assert client.get("/health").status_code == 200
