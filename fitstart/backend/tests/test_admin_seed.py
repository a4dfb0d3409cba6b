from app.db import models
from app.services.admin import ensure_admin_exists
from app.services.seed import seed
from app.core import security


def test_creates_default_admin(db_session):
    ensure_admin_exists(db_session, "Admin@FitStart.local", "strong_password")

    created = db_session.query(models.User).filter_by(email="admin@fitstart.local").one()

    assert created.role == models.UserRole.admin
    assert created.username == "admin"
    assert security.verify_password("strong_password", created.password_hash)


def test_updates_password_for_existing_admin(db_session):
    ensure_admin_exists(db_session, "admin@fitstart.local", "old_password")

    ensure_admin_exists(db_session, "admin@fitstart.local", "new_password")

    admins = db_session.query(models.User).filter_by(email="admin@fitstart.local").all()
    assert len(admins) == 1
    assert security.verify_password("new_password", admins[0].password_hash)


def test_promotes_existing_user(db_session):
    user = models.User(username="boss", email="boss@fitstart.local", role=models.UserRole.user)
    db_session.add(user)
    db_session.commit()

    ensure_admin_exists(db_session, "boss@fitstart.local", "password")

    db_session.refresh(user)
    assert user.role == models.UserRole.admin


def test_seed_creates_sample_venue_once(db_session):
    seed(db_session)
    seed(db_session)

    venues = db_session.query(models.Venue).all()
    assert len(venues) == 1
    assert venues[0].owner.role == models.UserRole.admin
