from django.contrib import admin

from mc_core.consultations.models import Consultation


@admin.register(Consultation)
class ConsultationAdmin(admin.ModelAdmin):
    list_display = ("id", "patient", "provider", "provider_type", "urgency", "status", "created_at")
    list_filter = ("provider_type", "urgency", "status")
    search_fields = ("patient__email", "provider__email", "chief_complaint")
    raw_id_fields = ("patient", "provider")
    ordering = ("-created_at",)
