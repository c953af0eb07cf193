import pytest

from mc_core.notifications.models import EntityType, Notification, NotificationType
from mc_core.notifications.services import NotificationService

pytestmark = pytest.mark.django_db


def _notify(user, notification_type=NotificationType.CONSULTATION_ACCEPTED, entity_type=EntityType.CONSULTATION):
    return NotificationService.notify(
        user_id=user.id,
        notification_type=notification_type,
        entity_type=entity_type,
        title="Hello",
        message="World",
    )


def test_notify_many_dedupes_recipients(make_user):
    a, b = make_user(), make_user()
    rows = NotificationService.notify_many(
        user_ids=[a.id, b.id, a.id],
        notification_type=NotificationType.CONSULTATION_REQUEST,
        entity_type=EntityType.CONSULTATION,
        title="New",
    )
    assert len(rows) == 2
    assert Notification.objects.filter(user=a).count() == 1


def test_notify_many_with_no_recipients_is_noop():
    rows = NotificationService.notify_many(
        user_ids=[],
        notification_type=NotificationType.CONSULTATION_REQUEST,
        entity_type=EntityType.CONSULTATION,
        title="New",
    )
    assert rows == []


def test_mark_read_only_touches_own_rows(make_user):
    owner, other = make_user(), make_user()
    mine = _notify(owner)
    theirs = _notify(other)

    updated = NotificationService.mark_read(user_id=owner.id, notification_ids=[mine.id, theirs.id])

    assert updated == 1
    theirs.refresh_from_db()
    assert theirs.is_read is False


def test_list_includes_unread_count_and_filters(make_user, client_for):
    user = make_user()
    _notify(user)
    _notify(user, NotificationType.PRESCRIPTION_READY, EntityType.PRESCRIPTION)
    read = _notify(user)
    NotificationService.mark_read(user_id=user.id, notification_ids=[read.id])

    c = client_for(user)
    res = c.get("/api/v1/notifications/")
    assert res.status_code == 200
    body = res.json()
    assert body["count"] == 3
    assert body["unread_count"] == 2

    res = c.get("/api/v1/notifications/", {"entity_type": "prescription"})
    assert res.json()["count"] == 1

    res = c.get("/api/v1/notifications/", {"read": "false"})
    assert res.json()["count"] == 2


def test_cannot_read_someone_elses_notification(make_user, client_for):
    owner, other = make_user(), make_user()
    n = _notify(owner)

    res = client_for(other).get(f"/api/v1/notifications/{n.id}/")
    assert res.status_code == 404

    res = client_for(other).post(f"/api/v1/notifications/{n.id}/mark-read/")
    assert res.status_code == 404


def test_mark_single_and_all_read(make_user, client_for):
    user = make_user()
    first = _notify(user)
    _notify(user)
    c = client_for(user)

    res = c.post(f"/api/v1/notifications/{first.id}/mark-read/")
    assert res.status_code == 200
    assert res.json()["is_read"] is True

    res = c.post("/api/v1/notifications/mark-read/", {"all": True}, format="json")
    assert res.status_code == 200
    assert res.json() == {"updated": 1, "unread_count": 0}


def test_mark_read_requires_ids_or_all(make_user, client_for):
    res = client_for(make_user()).post("/api/v1/notifications/mark-read/", {}, format="json")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "validation_error"
