import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from app.core import security
from app.db import models


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, user_id, title, body, data=None, notification_type=None):
        self.sent.append(
            {"user_id": user_id, "title": title, "body": body, "data": data, "type": notification_type}
        )


class RecordingInteractions:
    def __init__(self):
        self.recorded = []

    def record(self, user_id, venue_id, interaction_type, payload=None):
        self.recorded.append((user_id, venue_id, interaction_type, payload))


def future_date(days=3) -> date:
    return datetime.now(timezone.utc).date() + timedelta(days=days)


def create_user(session, username="player", role=models.UserRole.user):
    user = models.User(username=username, email=f"{username}@example.com", role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def create_venue(session, owner=None, hourly_rate="500", open_time="06:00", close_time="23:00"):
    venue = models.Venue(
        name="Downtown Turf Arena",
        category=models.VenueCategory.football,
        address="12 MG Road",
        open_time=open_time,
        close_time=close_time,
        hourly_rate=Decimal(hourly_rate),
        currency="INR",
        owner_id=owner.id if owner else None,
    )
    session.add(venue)
    session.commit()
    session.refresh(venue)
    return venue


def create_booking_row(
    session,
    user,
    venue,
    booking_date=None,
    slots=(("18:00", "19:00"),),
    status=models.BookingStatus.pending,
    payment_status=models.PaymentStatus.pending,
    order_id="order_test123",
):
    hours = len(slots)
    booking = models.Booking(
        user_id=user.id,
        venue_id=venue.id,
        booking_date=booking_date or future_date(),
        total_hours=hours,
        hourly_rate=venue.hourly_rate,
        total_amount=venue.hourly_rate * hours,
        currency="INR",
        payment_receipt=f"bk_{uuid.uuid4().hex}",
        provider_order_id=order_id,
        booking_status=status,
        payment_status=payment_status,
        time_slots=[
            models.BookingSlot(position=index, start_time=start, end_time=end)
            for index, (start, end) in enumerate(slots)
        ],
    )
    session.add(booking)
    session.commit()
    session.refresh(booking)
    return booking


def auth_headers(user):
    token = security.create_user_token(user.id, user.role.value)
    return {"Authorization": f"Bearer {token}"}
