from rest_framework import serializers

from mc_core.notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            "id",
            "type",
            "entity_type",
            "entity_id",
            "title",
            "message",
            "link",
            "is_read",
            "read_at",
            "metadata",
            "created_at",
        ]


class MarkReadSerializer(serializers.Serializer):
    notification_ids = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)
    all = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if not attrs.get("all") and not attrs.get("notification_ids"):
            raise serializers.ValidationError("Provide notification_ids or all=true.")
        return attrs


class MarkReadResultSerializer(serializers.Serializer):
    updated = serializers.IntegerField()
    unread_count = serializers.IntegerField()
