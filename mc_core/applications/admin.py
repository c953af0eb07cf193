from django.contrib import admin

from mc_core.applications.models import ApplicationAuditLog, PartnerApplication, ProviderApplication


@admin.register(ProviderApplication)
class ProviderApplicationAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "provider_type", "specialization", "status", "created_at")
    list_filter = ("provider_type", "status")
    search_fields = ("user__email", "user__name", "license_number", "specialization")
    raw_id_fields = ("user", "reviewed_by")
    ordering = ("-created_at",)


@admin.register(PartnerApplication)
class PartnerApplicationAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "partner_type", "business_name", "status", "created_at")
    list_filter = ("partner_type", "status")
    search_fields = ("user__email", "business_name", "license_number")
    raw_id_fields = ("user", "reviewed_by")
    ordering = ("-created_at",)


@admin.register(ApplicationAuditLog)
class ApplicationAuditLogAdmin(admin.ModelAdmin):
    list_display = ("application_type", "application_id", "action", "performed_by", "created_at")
    list_filter = ("application_type", "action")
    ordering = ("-created_at",)
