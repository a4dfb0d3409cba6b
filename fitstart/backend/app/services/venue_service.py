from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ..core.errors import FieldError, InvalidRequestError, NotFoundError, PermissionDeniedError
from ..db import models
from .interaction_service import InteractionLogger
from .slot_service import TIME_PATTERN


def _check_hours(open_time: str | None, close_time: str | None) -> None:
    errors = []
    for name, value in (("open_time", open_time), ("close_time", close_time)):
        if value is not None and not TIME_PATTERN.match(value):
            errors.append(FieldError(name, "Expected HH:MM"))
    if not errors and open_time and close_time and open_time >= close_time:
        errors.append(FieldError("close_time", "Closing time must be after opening time"))
    if errors:
        raise InvalidRequestError("Invalid operating hours", errors)


def _ensure_can_manage(venue: models.Venue, actor: models.User) -> None:
    if venue.owner_id != actor.id and actor.role != models.UserRole.admin:
        raise PermissionDeniedError("Not authorized to modify this venue")


def get_active_venue(db: Session, venue_id: int) -> models.Venue:
    venue = db.get(models.Venue, venue_id)
    if venue is None or not venue.is_active:
        raise NotFoundError("Venue not found")
    return venue


def list_venues(
    db: Session,
    *,
    category: models.VenueCategory | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[models.Venue], int]:
    filters = [models.Venue.is_active.is_(True)]
    if category is not None:
        filters.append(models.Venue.category == category)
    if search:
        pattern = f"%{search.strip()}%"
        filters.append(or_(models.Venue.name.ilike(pattern), models.Venue.address.ilike(pattern)))
    total = db.scalar(select(func.count(models.Venue.id)).where(*filters)) or 0
    venues = (
        db.execute(
            select(models.Venue)
            .where(*filters)
            .order_by(models.Venue.rating_average.desc(), models.Venue.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return list(venues), int(total)


def get_venue(
    db: Session,
    venue_id: int,
    viewer: models.User | None = None,
    interactions: InteractionLogger | None = None,
) -> models.Venue:
    venue = get_active_venue(db, venue_id)
    if viewer is not None and interactions is not None:
        interactions.record(viewer.id, venue.id, models.InteractionType.view)
    return venue


def create_venue(db: Session, owner: models.User, data: dict[str, Any]) -> models.Venue:
    _check_hours(data.get("open_time"), data.get("close_time"))
    venue = models.Venue(owner_id=owner.id, **data)
    db.add(venue)
    db.commit()
    db.refresh(venue)
    return venue


def update_venue(
    db: Session, venue_id: int, actor: models.User, changes: dict[str, Any]
) -> models.Venue:
    venue = get_active_venue(db, venue_id)
    _ensure_can_manage(venue, actor)
    _check_hours(changes.get("open_time", venue.open_time), changes.get("close_time", venue.close_time))
    # Existing bookings keep their own rate snapshot.
    for key, value in changes.items():
        setattr(venue, key, value)
    db.commit()
    db.refresh(venue)
    return venue


def deactivate_venue(db: Session, venue_id: int, actor: models.User) -> models.Venue:
    venue = get_active_venue(db, venue_id)
    _ensure_can_manage(venue, actor)
    venue.is_active = False
    db.commit()
    db.refresh(venue)
    return venue


def toggle_favorite(
    db: Session,
    user: models.User,
    venue_id: int,
    interactions: InteractionLogger | None = None,
) -> bool:
    """Add or remove ``venue_id`` from the user's favorites; returns the new state."""
    venue = get_active_venue(db, venue_id)
    if venue in user.favorites:
        user.favorites.remove(venue)
        favorited = False
    else:
        user.favorites.append(venue)
        favorited = True
    db.commit()
    if interactions is not None:
        interaction_type = (
            models.InteractionType.favorite if favorited else models.InteractionType.unfavorite
        )
        interactions.record(user.id, venue.id, interaction_type)
    return favorited


def list_favorites(user: models.User) -> list[models.Venue]:
    return [venue for venue in user.favorites if venue.is_active]
