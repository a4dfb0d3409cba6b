import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..core.errors import NotFoundError, PermissionDeniedError, PolicyViolationError
from ..db import models
from .notification_service import NotificationDispatcher
from .venue_service import get_active_venue

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 255


def _side_of(conversation: models.Conversation, actor: models.User) -> models.SenderRole:
    if conversation.user_id == actor.id:
        return models.SenderRole.user
    if conversation.venue.owner_id == actor.id:
        return models.SenderRole.venue
    raise PermissionDeniedError("Not a participant of this conversation")


def _load(db: Session, conversation_id: int, *, with_messages: bool = False) -> models.Conversation:
    options = [selectinload(models.Conversation.venue), selectinload(models.Conversation.user)]
    if with_messages:
        options.append(selectinload(models.Conversation.messages))
    conversation = db.execute(
        select(models.Conversation)
        .options(*options)
        .where(models.Conversation.id == conversation_id)
    ).scalar_one_or_none()
    if conversation is None:
        raise NotFoundError("Conversation not found")
    return conversation


def _find(db: Session, user_id: int, venue_id: int) -> models.Conversation | None:
    return db.execute(
        select(models.Conversation).where(
            models.Conversation.user_id == user_id,
            models.Conversation.venue_id == venue_id,
        )
    ).scalar_one_or_none()


def _append(
    conversation: models.Conversation,
    sender: models.User,
    side: models.SenderRole,
    body: str,
) -> models.Message:
    message = models.Message(sender_id=sender.id, sender_role=side, body=body)
    conversation.messages.append(message)
    conversation.last_message = body[:PREVIEW_LENGTH]
    conversation.last_message_at = datetime.now(timezone.utc)
    if side == models.SenderRole.user:
        conversation.owner_unread_count = (conversation.owner_unread_count or 0) + 1
    else:
        conversation.user_unread_count = (conversation.user_unread_count or 0) + 1
    return message


def _notify_recipient(
    notifier: NotificationDispatcher | None,
    conversation: models.Conversation,
    sender: models.User,
    side: models.SenderRole,
    body: str,
) -> None:
    if notifier is None:
        return
    recipient_id = (
        conversation.venue.owner_id if side == models.SenderRole.user else conversation.user_id
    )
    if recipient_id is None:
        return
    notifier.notify(
        recipient_id,
        f"New message from {sender.username}",
        body[:PREVIEW_LENGTH],
        {"type": "chat_message", "conversation_id": conversation.id},
        models.NotificationType.system,
    )


def start_conversation(
    db: Session,
    user: models.User,
    venue_id: int,
    initial_message: str | None = None,
    *,
    notifier: NotificationDispatcher | None = None,
) -> tuple[models.Conversation, bool]:
    """Open a thread with the venue owner, or return the one that already exists.

    The boolean is ``True`` when a new conversation was created.
    """
    venue = get_active_venue(db, venue_id)
    if venue.owner_id is None:
        raise PolicyViolationError("This venue does not accept messages")
    if venue.owner_id == user.id:
        raise PolicyViolationError("Cannot start a conversation with your own venue")

    existing = _find(db, user.id, venue.id)
    if existing is not None:
        return _load(db, existing.id, with_messages=True), False

    conversation = models.Conversation(user_id=user.id, venue_id=venue.id, last_message="")
    conversation.venue = venue
    body = (initial_message or "").strip()
    if body:
        _append(conversation, user, models.SenderRole.user, body)
    db.add(conversation)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = _find(db, user.id, venue.id)
        if existing is None:
            raise
        return _load(db, existing.id, with_messages=True), False

    logger.info(
        "Conversation started",
        extra={"conversation_id": conversation.id, "venue_id": venue.id, "user_id": user.id},
    )
    if body:
        _notify_recipient(notifier, conversation, user, models.SenderRole.user, body)
    return _load(db, conversation.id, with_messages=True), True


def send_message(
    db: Session,
    conversation_id: int,
    sender: models.User,
    body: str,
    *,
    notifier: NotificationDispatcher | None = None,
) -> models.Message:
    conversation = _load(db, conversation_id, with_messages=True)
    side = _side_of(conversation, sender)
    message = _append(conversation, sender, side, body)
    db.commit()
    db.refresh(message)
    _notify_recipient(notifier, conversation, sender, side, body)
    return message


def list_user_conversations(db: Session, user: models.User) -> list[models.Conversation]:
    return list(
        db.execute(
            select(models.Conversation)
            .options(selectinload(models.Conversation.venue), selectinload(models.Conversation.user))
            .where(models.Conversation.user_id == user.id)
            .order_by(models.Conversation.last_message_at.desc(), models.Conversation.id.desc())
        )
        .scalars()
        .all()
    )


def list_owner_conversations(db: Session, owner: models.User) -> list[models.Conversation]:
    return list(
        db.execute(
            select(models.Conversation)
            .join(models.Venue, models.Venue.id == models.Conversation.venue_id)
            .options(selectinload(models.Conversation.venue), selectinload(models.Conversation.user))
            .where(models.Venue.owner_id == owner.id)
            .order_by(models.Conversation.last_message_at.desc(), models.Conversation.id.desc())
        )
        .scalars()
        .all()
    )


def get_conversation(
    db: Session, conversation_id: int, actor: models.User
) -> models.Conversation:
    conversation = _load(db, conversation_id, with_messages=True)
    _side_of(conversation, actor)
    return conversation


def mark_read(db: Session, conversation_id: int, reader: models.User) -> models.Conversation:
    """Mark the other side's messages as read and reset the reader's unread counter."""
    conversation = _load(db, conversation_id)
    side = _side_of(conversation, reader)
    db.execute(
        update(models.Message)
        .where(
            models.Message.conversation_id == conversation.id,
            models.Message.sender_role != side,
            models.Message.is_read.is_(False),
        )
        .values(is_read=True)
        .execution_options(synchronize_session="fetch")
    )
    if side == models.SenderRole.user:
        conversation.user_unread_count = 0
    else:
        conversation.owner_unread_count = 0
    db.commit()
    return _load(db, conversation.id, with_messages=True)
