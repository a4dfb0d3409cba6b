import math

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from ...api import deps
from ...api.errors import to_http_exception
from ...core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ...core.errors import ServiceError
from ...db.session import get_db
from ...db import models, schemas
from ...services import venue_service
from ...services.interaction_service import InteractionLogger

router = APIRouter(prefix="/venues", tags=["venues"])


@router.get("", response_model=schemas.VenuePage)
def list_venues(
    category: models.VenueCategory | None = None,
    search: str | None = Query(default=None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    venues, total = venue_service.list_venues(
        db, category=category, search=search, page=page, limit=limit
    )
    return schemas.VenuePage(
        count=len(venues),
        total=total,
        page=page,
        pages=math.ceil(total / limit),
        data=[schemas.Venue.model_validate(venue) for venue in venues],
    )


@router.get("/favorites", response_model=list[schemas.Venue])
def list_favorites(user: models.User = Depends(deps.get_current_user)):
    return venue_service.list_favorites(user)


@router.get("/{venue_id}", response_model=schemas.Venue)
def get_venue(
    venue_id: int,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(deps.get_optional_user),
    interactions: InteractionLogger = Depends(deps.get_interaction_logger),
):
    try:
        return venue_service.get_venue(db, venue_id, viewer=viewer, interactions=interactions)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("", response_model=schemas.Venue, status_code=status.HTTP_201_CREATED)
def create_venue(
    payload: schemas.VenueCreate,
    db: Session = Depends(get_db),
    owner: models.User = Depends(deps.require_roles("venue_owner", "admin")),
):
    try:
        return venue_service.create_venue(db, owner, payload.model_dump())
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.patch("/{venue_id}", response_model=schemas.Venue)
def update_venue(
    venue_id: int,
    payload: schemas.VenueUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        return venue_service.update_venue(
            db, venue_id, user, payload.model_dump(exclude_unset=True)
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{venue_id}", response_model=schemas.StatusResponse)
def delete_venue(
    venue_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        venue_service.deactivate_venue(db, venue_id, user)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return schemas.StatusResponse(message="Venue deactivated")


@router.post("/{venue_id}/favorite", response_model=schemas.FavoriteToggle)
def toggle_favorite(
    venue_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
    interactions: InteractionLogger = Depends(deps.get_interaction_logger),
):
    try:
        favorited = venue_service.toggle_favorite(db, user, venue_id, interactions=interactions)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return schemas.FavoriteToggle(is_favorite=favorited)
