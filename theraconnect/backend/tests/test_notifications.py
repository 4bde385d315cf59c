from datetime import datetime, timezone

import httpx
import pytest
from app.config import Settings
from app.db import models
from app.services import notification_service

WEBHOOK = "http://hooks.test/notify"


class FakeClient:
    calls: list[dict] = []
    status_code = 200

    def __init__(self, *args, **kwargs):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def post(self, url, json):
        FakeClient.calls.append(json)
        return httpx.Response(self.status_code, request=httpx.Request("POST", url))


@pytest.fixture()
def webhook(monkeypatch):
    FakeClient.calls = []
    FakeClient.status_code = 200
    monkeypatch.setattr(
        notification_service, "get_settings", lambda: Settings(NOTIFICATION_WEBHOOK_URL=WEBHOOK)
    )
    monkeypatch.setattr(notification_service.httpx, "Client", FakeClient)
    return FakeClient


def queue(session, user_id, **kwargs):
    return notification_service.notify(
        session,
        user_id=user_id,
        message="Hello",
        type=models.NotificationType.booking_confirmed,
        **kwargs,
    )


def test_deliver_pending_sends_due_notifications(db_session, clock, parent, webhook):
    due = queue(db_session, parent.user_id)
    later = queue(
        db_session, parent.user_id, send_at=datetime(2024, 11, 1, 11, 0, tzinfo=timezone.utc)
    )

    sent = notification_service.deliver_pending(db_session)

    assert sent == 1
    assert webhook.calls == [
        {"user_id": parent.user_id, "type": "booking_confirmed", "message": "Hello"}
    ]
    db_session.refresh(due)
    db_session.refresh(later)
    assert due.status == models.NotificationStatus.sent
    assert due.sent_at is not None
    assert later.status == models.NotificationStatus.pending


def test_failed_delivery_is_marked(db_session, clock, parent, webhook):
    notification = queue(db_session, parent.user_id)
    webhook.status_code = 500

    assert notification_service.deliver_pending(db_session) == 0

    db_session.refresh(notification)
    assert notification.status == models.NotificationStatus.failed


def test_delivery_skipped_without_webhook(db_session, clock, monkeypatch, parent):
    monkeypatch.setattr(notification_service, "get_settings", lambda: Settings())
    notification = queue(db_session, parent.user_id)

    assert notification_service.deliver_pending(db_session) == 0

    db_session.refresh(notification)
    assert notification.status == models.NotificationStatus.pending


def test_notify_failure_is_swallowed(db_session, clock, monkeypatch, parent):
    def broken_commit():
        raise notification_service.SQLAlchemyError("database is down")

    monkeypatch.setattr(db_session, "commit", broken_commit)

    assert queue(db_session, parent.user_id) is None


def test_list_and_mark_read(db_session, clock, parent):
    first = queue(db_session, parent.user_id)
    queue(db_session, parent.user_id)

    notification_service.mark_read(db_session, first)

    assert len(notification_service.list_for_user(db_session, parent.user_id)) == 2
    unread = notification_service.list_for_user(db_session, parent.user_id, unread_only=True)
    assert first.id not in [n.id for n in unread]
    assert len(unread) == 1
