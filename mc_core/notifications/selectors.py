from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import QuerySet

from mc_core.common.errors import NotFoundError
from mc_core.notifications.models import Notification


def notifications_qs(*, user_id) -> QuerySet[Notification]:
    return Notification.objects.filter(user_id=user_id).order_by("-created_at", "-id")


def unread_count(*, user_id) -> int:
    return Notification.objects.filter(user_id=user_id, is_read=False).count()


def get_notification_for_user(*, notification_id, user_id) -> Notification:
    try:
        return Notification.objects.get(id=notification_id, user_id=user_id)
    except (Notification.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Notification not found.")
