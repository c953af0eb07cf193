from __future__ import annotations

import django_filters

from mc_core.notifications.models import EntityType, Notification, NotificationType


class NotificationFilter(django_filters.FilterSet):
    type = django_filters.ChoiceFilter(choices=NotificationType.choices)
    entity_type = django_filters.ChoiceFilter(choices=EntityType.choices)
    read = django_filters.BooleanFilter(field_name="is_read")

    class Meta:
        model = Notification
        fields = ["type", "entity_type", "read"]
