from decimal import Decimal

from app.db import models

from factories import auth_headers, create_booking_row, create_user, create_venue, future_date


def booking_payload(venue, booking_date=None, slots=(("18:00", "20:00"),), **extra):
    payload = {
        "venueId": venue.id,
        "bookingDate": (booking_date or future_date()).isoformat(),
        "timeSlots": [{"startTime": start, "endTime": end} for start, end in slots],
    }
    payload.update(extra)
    return payload


def test_create_booking(api_client, db_session):
    user = create_user(db_session)
    venue = create_venue(db_session)

    response = api_client.post(
        "/api/v1/bookings", json=booking_payload(venue), headers=auth_headers(user)
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["replayed"] is False
    assert body["data"]["booking_status"] == "pending"
    assert body["data"]["total_hours"] == 2
    assert Decimal(str(body["data"]["total_amount"])) == Decimal("1000")
    assert body["data"]["venue_name"] == venue.name
    assert body["payment_order"]["order_id"] == body["data"]["provider_order_id"]
    assert body["payment_order"]["currency"] == "INR"
    assert len(api_client.interactions.recorded) == 1


def test_create_booking_requires_auth(api_client, db_session):
    venue = create_venue(db_session)

    response = api_client.post("/api/v1/bookings", json=booking_payload(venue))

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_create_booking_conflict_returns_409(api_client, db_session):
    user = create_user(db_session)
    venue = create_venue(db_session)
    day = future_date()
    create_booking_row(db_session, user, venue, day, slots=(("18:00", "19:00"),))

    response = api_client.post(
        "/api/v1/bookings",
        json=booking_payload(venue, day, slots=(("18:30", "19:30"),)),
        headers=auth_headers(user),
    )

    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "message": "Selected time slots are not available",
        "errors": [],
    }


def test_invalid_slot_reports_field_errors(api_client, db_session):
    user = create_user(db_session)
    venue = create_venue(db_session)

    response = api_client.post(
        "/api/v1/bookings",
        json=booking_payload(venue, slots=(("18:00", "18:30"),)),
        headers=auth_headers(user),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["field"] == "time_slots[0]"


def test_missing_slots_is_validation_error(api_client, db_session):
    user = create_user(db_session)
    venue = create_venue(db_session)

    response = api_client.post(
        "/api/v1/bookings",
        json={"venueId": venue.id, "bookingDate": future_date().isoformat(), "timeSlots": []},
        headers=auth_headers(user),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["message"] == "Validation failed"
    assert body["errors"]


def test_idempotent_create_replays(api_client, db_session):
    user = create_user(db_session)
    venue = create_venue(db_session)
    payload = booking_payload(venue, idempotency_key="checkout-42")

    first = api_client.post("/api/v1/bookings", json=payload, headers=auth_headers(user))
    second = api_client.post("/api/v1/bookings", json=payload, headers=auth_headers(user))

    assert first.status_code == second.status_code == 201
    assert second.json()["replayed"] is True
    assert second.json()["data"]["id"] == first.json()["data"]["id"]


def test_verify_payment(api_client, db_session, gateway_client, notifier):
    user = create_user(db_session)
    venue = create_venue(db_session)
    booking = create_booking_row(db_session, user, venue)

    response = api_client.post(
        f"/api/v1/bookings/{booking.id}/verify-payment",
        json={
            "razorpayPaymentId": "pay_001",
            "razorpaySignature": gateway_client.sign(booking.provider_order_id, "pay_001"),
        },
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    assert response.json()["booking_status"] == "confirmed"
    assert response.json()["payment_status"] == "completed"
    assert len(notifier.sent) == 1


def test_verify_payment_bad_signature(api_client, db_session):
    user = create_user(db_session)
    venue = create_venue(db_session)
    booking = create_booking_row(db_session, user, venue)

    response = api_client.post(
        f"/api/v1/bookings/{booking.id}/verify-payment",
        json={"payment_id": "pay_001", "signature": "forged"},
        headers=auth_headers(user),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid payment signature"
    db_session.refresh(booking)
    assert booking.booking_status == models.BookingStatus.pending


def test_cancel_inside_cutoff_returns_400(api_client, db_session):
    user = create_user(db_session)
    venue = create_venue(db_session)
    booking = create_booking_row(db_session, user, venue, future_date(0))

    response = api_client.put(
        f"/api/v1/bookings/{booking.id}/cancel", json={"reason": "Rain"}, headers=auth_headers(user)
    )

    assert response.status_code == 400
    assert "24 hours" in response.json()["message"]


def test_cancel_booking(api_client, db_session, notifier):
    user = create_user(db_session)
    venue = create_venue(db_session)
    booking = create_booking_row(db_session, user, venue)

    response = api_client.put(
        f"/api/v1/bookings/{booking.id}/cancel", json={"reason": "Rain"}, headers=auth_headers(user)
    )

    assert response.status_code == 200
    assert response.json()["booking_status"] == "cancelled"
    assert response.json()["cancellation_reason"] == "Rain"
    assert notifier.sent[0]["title"] == "Booking Cancelled"


def test_other_users_booking_is_forbidden(api_client, db_session):
    owner = create_user(db_session, "owner")
    stranger = create_user(db_session, "stranger")
    venue = create_venue(db_session)
    booking = create_booking_row(db_session, owner, venue)

    response = api_client.get(f"/api/v1/bookings/{booking.id}", headers=auth_headers(stranger))
    assert response.status_code == 403

    response = api_client.get("/api/v1/bookings/9999", headers=auth_headers(stranger))
    assert response.status_code == 404


def test_list_bookings(api_client, db_session):
    user = create_user(db_session)
    venue = create_venue(db_session)
    for start, end in (("08:00", "09:00"), ("10:00", "11:00"), ("12:00", "13:00")):
        create_booking_row(db_session, user, venue, slots=((start, end),))

    response = api_client.get(
        "/api/v1/bookings", params={"page": 1, "limit": 2}, headers=auth_headers(user)
    )

    body = response.json()
    assert response.status_code == 200
    assert body["count"] == 2
    assert body["total"] == 3
    assert body["pages"] == 2


def test_available_slots(api_client, db_session):
    user = create_user(db_session)
    venue = create_venue(db_session)
    day = future_date()
    create_booking_row(db_session, user, venue, day, slots=(("18:00", "20:00"),))

    response = api_client.get(
        f"/api/v1/bookings/available-slots/{venue.id}", params={"date": day.isoformat()}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["booked_slots"] == [{"start_time": "18:00", "end_time": "20:00"}]
    assert body["free_slots"][-1] == {"start_time": "20:00", "end_time": "23:00"}


def test_admin_venue_bookings(api_client, db_session):
    user = create_user(db_session)
    admin = create_user(db_session, "admin", role=models.UserRole.admin)
    venue = create_venue(db_session)
    day = future_date()
    create_booking_row(db_session, user, venue, day)

    path = f"/api/v1/bookings/admin/venue/{venue.id}"
    assert api_client.get(path, params={"date": day.isoformat()}, headers=auth_headers(user)).status_code == 403

    response = api_client.get(path, params={"date": day.isoformat()}, headers=auth_headers(admin))
    assert response.status_code == 200
    assert len(response.json()) == 1
