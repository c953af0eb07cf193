from django.contrib import admin

from mc_core.prescriptions.models import Prescription


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ("id", "patient", "provider", "pharmacy", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("qr_token", "patient__email", "provider__email", "pharmacy__email")
    raw_id_fields = ("consultation", "patient", "provider", "pharmacy")
    readonly_fields = ("qr_token",)
    ordering = ("-created_at",)
