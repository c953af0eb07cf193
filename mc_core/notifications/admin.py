from django.contrib import admin

from mc_core.notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "type", "entity_type", "is_read", "created_at")
    list_filter = ("type", "entity_type", "is_read")
    search_fields = ("user__email", "title")
    ordering = ("-created_at",)
    raw_id_fields = ("user",)
