from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from mc_core.common.api.pagination import DefaultPagination, paginate
from mc_core.notifications.api.serializers import (
    MarkReadResultSerializer,
    MarkReadSerializer,
    NotificationSerializer,
)
from mc_core.notifications.filters import NotificationFilter
from mc_core.notifications.selectors import get_notification_for_user, notifications_qs, unread_count
from mc_core.notifications.services import NotificationService


class NotificationViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    The caller's own notifications. Nobody can read or mark another user's rows.
    """
    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = DefaultPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = NotificationFilter

    def get_queryset(self):
        return notifications_qs(user_id=self.request.user.id)

    @extend_schema(responses={200: NotificationSerializer(many=True)}, tags=["Notifications"])
    def list(self, request, *args, **kwargs):
        qs = self.filter_queryset(self.get_queryset())
        return paginate(
            request,
            qs,
            NotificationSerializer,
            paginator=self.paginator,
            extra={"unread_count": unread_count(user_id=request.user.id)},
        )

    @extend_schema(responses={200: NotificationSerializer}, tags=["Notifications"])
    def retrieve(self, request, pk=None, *args, **kwargs):
        notif = get_notification_for_user(notification_id=pk, user_id=request.user.id)
        return Response(NotificationSerializer(notif).data, status=status.HTTP_200_OK)

    @extend_schema(request=None, responses={200: NotificationSerializer}, tags=["Notifications"])
    @action(methods=["POST"], detail=True, url_path="mark-read")
    def mark_read(self, request, pk=None):
        notif = get_notification_for_user(notification_id=pk, user_id=request.user.id)
        notif.mark_read()
        notif.save(update_fields=["is_read", "read_at", "updated_at"])
        return Response(NotificationSerializer(notif).data, status=status.HTTP_200_OK)

    @extend_schema(request=MarkReadSerializer, responses={200: MarkReadResultSerializer}, tags=["Notifications"])
    @action(methods=["POST"], detail=False, url_path="mark-read")
    def mark_many_read(self, request):
        ser = MarkReadSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        if data["all"]:
            updated = NotificationService.mark_all_read(user_id=request.user.id)
        else:
            updated = NotificationService.mark_read(user_id=request.user.id, notification_ids=data["notification_ids"])

        return Response(
            {"updated": updated, "unread_count": unread_count(user_id=request.user.id)},
            status=status.HTTP_200_OK,
        )
