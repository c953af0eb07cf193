from django.contrib import admin

from mc_core.diagnostics.models import DiagnosticOrder


@admin.register(DiagnosticOrder)
class DiagnosticOrderAdmin(admin.ModelAdmin):
    list_display = ("id", "patient", "doctor", "diagnostic_center", "urgency", "status", "created_at")
    list_filter = ("status", "urgency")
    search_fields = ("patient__email", "doctor__email", "diagnostic_center__email")
    raw_id_fields = ("patient", "doctor", "diagnostic_center", "consultation")
    ordering = ("-created_at",)
