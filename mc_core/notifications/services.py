from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from mc_core.notifications.models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Single write path for notifications. Callers invoke it inside their own
    transaction so a failed insert rolls back the state change that triggered it.
    """

    @staticmethod
    @transaction.atomic
    def notify(
        *,
        user_id,
        notification_type: str,
        entity_type: str,
        title: str,
        message: str = "",
        entity_id: UUID | None = None,
        link: str = "",
        metadata: dict | None = None,
    ) -> Notification:
        return Notification.objects.create(
            user_id=user_id,
            type=notification_type,
            entity_type=entity_type,
            entity_id=entity_id,
            title=title,
            message=message,
            link=link,
            metadata=metadata or {},
        )

    @staticmethod
    @transaction.atomic
    def notify_many(
        *,
        user_ids: Iterable,
        notification_type: str,
        entity_type: str,
        title: str,
        message: str = "",
        entity_id: UUID | None = None,
        link: str = "",
        metadata: dict | None = None,
    ) -> list[Notification]:
        # dedupe, keep order
        seen = set()
        recipients = []
        for uid in user_ids:
            if uid not in seen:
                seen.add(uid)
                recipients.append(uid)

        objs = [
            Notification(
                user_id=uid,
                type=notification_type,
                entity_type=entity_type,
                entity_id=entity_id,
                title=title,
                message=message,
                link=link,
                metadata=metadata or {},
            )
            for uid in recipients
        ]
        created = Notification.objects.bulk_create(objs)
        logger.info(
            "notifications fanned out",
            extra={"type": notification_type, "entity_id": str(entity_id), "count": len(created)},
        )
        return created

    @staticmethod
    @transaction.atomic
    def mark_read(*, user_id, notification_ids: Iterable) -> int:
        """
        Marks the given notifications read. Ids the user does not own are ignored.
        """
        return Notification.objects.filter(
            user_id=user_id,
            id__in=list(notification_ids),
            is_read=False,
        ).update(is_read=True, read_at=timezone.now())

    @staticmethod
    @transaction.atomic
    def mark_all_read(*, user_id) -> int:
        return Notification.objects.filter(user_id=user_id, is_read=False).update(
            is_read=True,
            read_at=timezone.now(),
        )
