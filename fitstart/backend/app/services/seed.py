from decimal import Decimal
from sqlalchemy.orm import Session
from ..db.session import SessionLocal
from ..db import models
from ..config import get_settings
from .admin import ensure_admin_exists


def seed(session: Session) -> None:
    settings = get_settings()
    admin = ensure_admin_exists(
        session, settings.default_admin_email, settings.default_admin_password
    )
    if session.query(models.Venue).count() == 0:
        session.add(
            models.Venue(
                name="Downtown Turf Arena",
                category=models.VenueCategory.football,
                description="Five-a-side turf with floodlights",
                address="12 MG Road",
                phone="+910000000000",
                open_time="06:00",
                close_time="23:00",
                hourly_rate=Decimal("500"),
                currency=settings.payment_currency,
                owner_id=admin.id,
                is_verified=True,
            )
        )
    session.commit()


if __name__ == "__main__":
    with SessionLocal() as session:
        seed(session)
        print("Seed data created")
