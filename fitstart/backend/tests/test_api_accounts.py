from app.db import models

from factories import auth_headers, create_user, create_venue


def register(client, username="player", email="player@example.com", password="secret123"):
    return client.post(
        "/api/v1/auth/register",
        json={"username": username, "email": email, "password": password},
    )


def test_register_and_login(api_client):
    response = register(api_client)
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "user"

    login = api_client.post(
        "/api/v1/auth/login",
        data={"username": "Player@Example.com", "password": "secret123"},
    )
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = api_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "player@example.com"


def test_register_duplicate_email(api_client):
    register(api_client)

    response = register(api_client, username="someone-else")

    assert response.status_code == 409
    assert response.json()["success"] is False


def test_login_with_wrong_password(api_client):
    register(api_client)

    response = api_client.post(
        "/api/v1/auth/login", data={"username": "player@example.com", "password": "wrong"}
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_invalid_token_rejected(api_client):
    response = api_client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_update_profile_and_device_tokens(api_client, db_session):
    user = create_user(db_session)
    headers = auth_headers(user)

    response = api_client.patch(
        "/api/v1/auth/me", json={"phone": "+911234567890", "notifications_enabled": False}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["notifications_enabled"] is False

    for _ in range(2):
        response = api_client.post(
            "/api/v1/auth/device-tokens", json={"token": "fcm-1", "platform": "ios"}, headers=headers
        )
        assert response.status_code == 200
    assert db_session.query(models.DeviceToken).filter_by(user_id=user.id).count() == 1

    response = api_client.delete(
        "/api/v1/auth/device-tokens", params={"token": "fcm-1"}, headers=headers
    )
    assert response.status_code == 200
    response = api_client.delete(
        "/api/v1/auth/device-tokens", params={"token": "fcm-1"}, headers=headers
    )
    assert response.status_code == 404


def test_list_and_get_venues(api_client, db_session):
    user = create_user(db_session)
    venue = create_venue(db_session)
    hidden = create_venue(db_session)
    hidden.is_active = False
    db_session.commit()

    listing = api_client.get("/api/v1/venues")
    assert listing.status_code == 200
    assert [item["id"] for item in listing.json()["data"]] == [venue.id]

    detail = api_client.get(f"/api/v1/venues/{venue.id}", headers=auth_headers(user))
    assert detail.status_code == 200
    assert api_client.interactions.recorded == [
        (user.id, venue.id, models.InteractionType.view, None)
    ]

    assert api_client.get(f"/api/v1/venues/{hidden.id}").status_code == 404


def test_venue_management_roles(api_client, db_session):
    owner = create_user(db_session, "owner", role=models.UserRole.venue_owner)
    player = create_user(db_session)
    payload = {
        "name": "Shuttle Court",
        "category": "badminton",
        "address": "4 Park Street",
        "open_time": "07:00",
        "close_time": "22:00",
        "hourly_rate": "350",
    }

    assert api_client.post("/api/v1/venues", json=payload, headers=auth_headers(player)).status_code == 403

    created = api_client.post("/api/v1/venues", json=payload, headers=auth_headers(owner))
    assert created.status_code == 201
    venue_id = created.json()["id"]
    assert created.json()["owner_id"] == owner.id

    forbidden = api_client.patch(
        f"/api/v1/venues/{venue_id}", json={"hourly_rate": "10"}, headers=auth_headers(player)
    )
    assert forbidden.status_code == 403

    bad_hours = api_client.patch(
        f"/api/v1/venues/{venue_id}", json={"close_time": "06:00"}, headers=auth_headers(owner)
    )
    assert bad_hours.status_code == 422
    assert bad_hours.json()["errors"][0]["field"] == "close_time"

    removed = api_client.delete(f"/api/v1/venues/{venue_id}", headers=auth_headers(owner))
    assert removed.status_code == 200
    assert api_client.get(f"/api/v1/venues/{venue_id}").status_code == 404


def test_toggle_favorite(api_client, db_session):
    user = create_user(db_session)
    venue = create_venue(db_session)
    headers = auth_headers(user)

    first = api_client.post(f"/api/v1/venues/{venue.id}/favorite", headers=headers)
    assert first.json()["is_favorite"] is True
    favorites = api_client.get("/api/v1/venues/favorites", headers=headers)
    assert [item["id"] for item in favorites.json()] == [venue.id]

    second = api_client.post(f"/api/v1/venues/{venue.id}/favorite", headers=headers)
    assert second.json()["is_favorite"] is False
    assert api_client.get("/api/v1/venues/favorites", headers=headers).json() == []


def test_notifications_endpoints(api_client, db_session):
    user = create_user(db_session)
    headers = auth_headers(user)
    db_session.add_all(
        [
            models.Notification(user_id=user.id, title="One", body="..."),
            models.Notification(user_id=user.id, title="Two", body="..."),
        ]
    )
    db_session.commit()

    listing = api_client.get("/api/v1/notifications", headers=headers)
    assert len(listing.json()) == 2

    first_id = listing.json()[0]["id"]
    read = api_client.post(f"/api/v1/notifications/{first_id}/read", headers=headers)
    assert read.json()["is_read"] is True
    assert api_client.post("/api/v1/notifications/9999/read", headers=headers).status_code == 404

    unread = api_client.get("/api/v1/notifications", params={"unread_only": True}, headers=headers)
    assert len(unread.json()) == 1

    cleared = api_client.post("/api/v1/notifications/read-all", headers=headers)
    assert cleared.json()["success"] is True


def test_health(api_client):
    assert api_client.get("/api/v1/health").json() == {"status": "ok", "database": "ok"}


def test_update_password(api_client):
    token = register(api_client).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    wrong = api_client.put(
        "/api/v1/auth/updatepassword",
        json={"currentPassword": "not-it", "newPassword": "brand-new-pass"},
        headers=headers,
    )
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Password is incorrect"

    changed = api_client.put(
        "/api/v1/auth/updatepassword",
        json={"currentPassword": "secret123", "newPassword": "brand-new-pass"},
        headers=headers,
    )
    assert changed.status_code == 200
    assert changed.json()["access_token"]

    old_login = api_client.post(
        "/api/v1/auth/login", data={"username": "player@example.com", "password": "secret123"}
    )
    assert old_login.status_code == 401
    new_login = api_client.post(
        "/api/v1/auth/login", data={"username": "player@example.com", "password": "brand-new-pass"}
    )
    assert new_login.status_code == 200
