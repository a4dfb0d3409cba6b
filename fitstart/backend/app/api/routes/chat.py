from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from ...api import deps
from ...api.errors import to_http_exception
from ...core.errors import ServiceError
from ...db.session import get_db
from ...db import models, schemas
from ...services import chat_service
from ...services.notification_service import NotificationDispatcher

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/conversations", response_model=schemas.ConversationDetail)
def start_conversation(
    payload: schemas.ConversationStart,
    response: Response,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
    notifier: NotificationDispatcher = Depends(deps.get_notifier),
):
    try:
        conversation, created = chat_service.start_conversation(
            db, user, payload.venue_id, payload.message, notifier=notifier
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return conversation


@router.get("/conversations/user", response_model=list[schemas.Conversation])
def list_user_conversations(
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    return chat_service.list_user_conversations(db, user)


@router.get("/conversations/owner", response_model=list[schemas.Conversation])
def list_owner_conversations(
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    return chat_service.list_owner_conversations(db, user)


@router.get("/conversations/{conversation_id}", response_model=schemas.ConversationDetail)
def get_conversation(
    conversation_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        return chat_service.get_conversation(db, conversation_id, user)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=schemas.Message,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    conversation_id: int,
    payload: schemas.MessageCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
    notifier: NotificationDispatcher = Depends(deps.get_notifier),
):
    try:
        return chat_service.send_message(
            db, conversation_id, user, payload.message, notifier=notifier
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.put("/conversations/{conversation_id}/read", response_model=schemas.ConversationDetail)
def mark_read(
    conversation_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        return chat_service.mark_read(db, conversation_id, user)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
