from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

import httpx
from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..core.tasks import run_detached
from ..db import models

logger = logging.getLogger(__name__)

FCM_ENDPOINT = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"
ANDROID_CHANNEL_ID = "fitstart_notifications"


class PushSender:
    """Delivers a message to device tokens through the FCM HTTP v1 API."""

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.settings.fcm_project_id and self.settings.fcm_access_token)

    def build_message(
        self, token: str, title: str, body: str, data: dict[str, Any] | None
    ) -> dict[str, Any]:
        return {
            "message": {
                "token": token,
                "notification": {"title": title, "body": body},
                # FCM only accepts string values in the data payload
                "data": {key: str(value) for key, value in (data or {}).items()},
                "android": {
                    "priority": "high",
                    "notification": {"sound": "default", "channel_id": ANDROID_CHANNEL_ID},
                },
                "apns": {"payload": {"aps": {"sound": "default"}}},
            }
        }

    def send(self, tokens: list[str], title: str, body: str, data: dict[str, Any] | None) -> int:
        """Send to every token and return how many deliveries succeeded."""
        if not self.enabled:
            logger.warning("FCM is not configured; skipping push delivery")
            return 0
        url = FCM_ENDPOINT.format(project_id=self.settings.fcm_project_id)
        delivered = 0
        with httpx.Client(
            timeout=self.settings.fcm_timeout_sec,
            headers={"Authorization": f"Bearer {self.settings.fcm_access_token}"},
            transport=self._transport,
        ) as client:
            for token in tokens:
                try:
                    response = client.post(url, json=self.build_message(token, title, body, data))
                    response.raise_for_status()
                    delivered += 1
                except httpx.HTTPError:
                    logger.exception("Failed to send push notification", extra={"token": token[:12]})
        return delivered


class NotificationDispatcher:
    """Best-effort notification fan-out.

    ``notify`` never raises; persistence and push errors are logged.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        background: BackgroundTasks | None = None,
        sender: PushSender | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.background = background
        self.sender = sender or PushSender(get_settings())

    def notify(
        self,
        user_id: int,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
        notification_type: models.NotificationType = models.NotificationType.system,
    ) -> None:
        run_detached(self.background, self.deliver, user_id, title, body, data, notification_type)

    def deliver(
        self,
        user_id: int,
        title: str,
        body: str,
        data: dict[str, Any] | None,
        notification_type: models.NotificationType,
    ) -> None:
        try:
            with self.session_factory() as db:
                user = db.get(models.User, user_id)
                if user is None:
                    logger.warning("Notification target not found", extra={"user_id": user_id})
                    return
                notification = models.Notification(
                    user_id=user_id,
                    title=title,
                    body=body,
                    type=notification_type,
                    data=data or {},
                )
                db.add(notification)
                tokens = [device.token for device in user.device_tokens]
                if user.notifications_enabled and tokens:
                    notification.sent_via_push = self.sender.send(tokens, title, body, data) > 0
                db.commit()
        except Exception:
            logger.exception("Failed to deliver notification", extra={"user_id": user_id})


def list_notifications(
    db: Session, user: models.User, *, unread_only: bool = False, limit: int = 50
) -> list[models.Notification]:
    query = db.query(models.Notification).filter(models.Notification.user_id == user.id)
    if unread_only:
        query = query.filter(models.Notification.is_read.is_(False))
    return query.order_by(models.Notification.created_at.desc(), models.Notification.id.desc()).limit(limit).all()


def mark_read(db: Session, user: models.User, notification_id: int) -> models.Notification | None:
    notification = (
        db.query(models.Notification)
        .filter_by(id=notification_id, user_id=user.id)
        .first()
    )
    if notification is None:
        return None
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, user: models.User) -> int:
    updated = (
        db.query(models.Notification)
        .filter(models.Notification.user_id == user.id, models.Notification.is_read.is_(False))
        .update(
            {"is_read": True, "read_at": datetime.now(timezone.utc)},
            synchronize_session=False,
        )
    )
    db.commit()
    return updated
