from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas
from ...services import notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[schemas.Notification])
def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    return notification_service.list_notifications(db, user, unread_only=unread_only, limit=limit)


@router.post("/read-all", response_model=schemas.StatusResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    updated = notification_service.mark_all_read(db, user)
    return schemas.StatusResponse(message=f"{updated} notifications marked as read")


@router.post("/{notification_id}/read", response_model=schemas.Notification)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    notification = notification_service.mark_read(db, user, notification_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification
