import json

import httpx
from fastapi import BackgroundTasks
from sqlalchemy.exc import OperationalError

from app.config import Settings
from app.db import models
from app.services import notification_service
from app.services.notification_service import NotificationDispatcher, PushSender

from factories import create_user


def fcm_settings():
    return Settings(fcm_project_id="fitstart-test", fcm_access_token="token-123")


def add_device(session, user, token="device-token-1"):
    session.add(models.DeviceToken(user_id=user.id, token=token))
    session.commit()


def test_notification_stored_without_push(db_session, session_factory):
    user = create_user(db_session)
    dispatcher = NotificationDispatcher(session_factory, sender=PushSender(Settings()))

    dispatcher.notify(user.id, "Booking Confirmed!", "See you there", {"booking_id": 7})

    stored = db_session.query(models.Notification).one()
    assert stored.user_id == user.id
    assert stored.title == "Booking Confirmed!"
    assert stored.data == {"booking_id": 7}
    assert stored.is_read is False
    assert stored.sent_via_push is False


def test_push_sent_to_device_tokens(db_session, session_factory):
    user = create_user(db_session)
    add_device(db_session, user)
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"name": "projects/fitstart-test/messages/1"})

    sender = PushSender(fcm_settings(), transport=httpx.MockTransport(handler))
    dispatcher = NotificationDispatcher(session_factory, sender=sender)

    dispatcher.notify(user.id, "Reminder", "Tomorrow at 18:00", {"booking_id": 7})

    assert len(requests) == 1
    assert requests[0].url.path == "/v1/projects/fitstart-test/messages:send"
    assert requests[0].headers["authorization"] == "Bearer token-123"
    message = json.loads(requests[0].content)["message"]
    assert message["token"] == "device-token-1"
    assert message["data"] == {"booking_id": "7"}
    assert db_session.query(models.Notification).one().sent_via_push is True


def test_push_failure_keeps_notification(db_session, session_factory):
    user = create_user(db_session)
    add_device(db_session, user)
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    dispatcher = NotificationDispatcher(
        session_factory, sender=PushSender(fcm_settings(), transport=transport)
    )

    dispatcher.notify(user.id, "Reminder", "Tomorrow")

    stored = db_session.query(models.Notification).one()
    assert stored.sent_via_push is False


def test_push_skipped_when_user_opted_out(db_session, session_factory):
    user = create_user(db_session)
    user.notifications_enabled = False
    db_session.commit()
    add_device(db_session, user)
    requests = []
    transport = httpx.MockTransport(lambda request: requests.append(request) or httpx.Response(200))
    dispatcher = NotificationDispatcher(
        session_factory, sender=PushSender(fcm_settings(), transport=transport)
    )

    dispatcher.notify(user.id, "Reminder", "Tomorrow")

    assert requests == []
    assert db_session.query(models.Notification).count() == 1


def test_storage_failure_is_swallowed():
    def broken_session():
        raise OperationalError("INSERT", {}, Exception("database is down"))

    dispatcher = NotificationDispatcher(broken_session, sender=PushSender(Settings()))
    dispatcher.notify(1, "Booking Confirmed!", "See you there")


def test_unknown_user_is_ignored(db_session, session_factory):
    dispatcher = NotificationDispatcher(session_factory, sender=PushSender(Settings()))
    dispatcher.notify(999, "Hello", "Nobody home")
    assert db_session.query(models.Notification).count() == 0


def test_background_delivery_is_deferred(db_session, session_factory):
    user = create_user(db_session)
    tasks = BackgroundTasks()
    dispatcher = NotificationDispatcher(
        session_factory, background=tasks, sender=PushSender(Settings())
    )

    dispatcher.notify(user.id, "Booking Cancelled", "Refund pending")

    assert len(tasks.tasks) == 1
    assert db_session.query(models.Notification).count() == 0


def test_mark_read_and_list(db_session):
    user = create_user(db_session)
    other = create_user(db_session, "other")
    for title in ("First", "Second"):
        db_session.add(models.Notification(user_id=user.id, title=title, body="..."))
    db_session.add(models.Notification(user_id=other.id, title="Other", body="..."))
    db_session.commit()

    items = notification_service.list_notifications(db_session, user)
    assert {n.title for n in items} == {"First", "Second"}

    marked = notification_service.mark_read(db_session, user, items[0].id)
    assert marked.is_read is True
    assert marked.read_at is not None
    unread = notification_service.list_notifications(db_session, user, unread_only=True)
    assert len(unread) == 1

    other_item = db_session.query(models.Notification).filter_by(user_id=other.id).one()
    assert notification_service.mark_read(db_session, user, other_item.id) is None

    assert notification_service.mark_all_read(db_session, user) == 1
    assert notification_service.list_notifications(db_session, user, unread_only=True) == []


def test_unexpected_delivery_error_is_swallowed(db_session, session_factory):
    user = create_user(db_session)
    add_device(db_session, user)

    class ExplodingSender(PushSender):
        def send(self, tokens, title, body, data):
            raise httpx.InvalidURL("bad project id")

    def unavailable_session():
        raise RuntimeError("session factory unavailable")

    NotificationDispatcher(session_factory, sender=ExplodingSender(Settings())).notify(
        user.id, "Reminder", "Tomorrow"
    )
    NotificationDispatcher(unavailable_session, sender=PushSender(Settings())).notify(
        user.id, "Reminder", "Tomorrow"
    )

    assert db_session.query(models.Notification).count() == 0
