from django.contrib import admin

from mc_core.referrals.models import Referral, ReferralDecline


class ReferralDeclineInline(admin.TabularInline):
    model = ReferralDecline
    extra = 0
    raw_id_fields = ("specialist",)


@admin.register(Referral)
class ReferralAdmin(admin.ModelAdmin):
    list_display = ("id", "patient", "referring_provider", "specialist", "specialization", "status", "created_at")
    list_filter = ("status", "urgency")
    search_fields = ("specialization", "patient__email", "referring_provider__email")
    raw_id_fields = ("patient", "referring_provider", "specialist", "source_consultation", "consultation")
    inlines = [ReferralDeclineInline]
    ordering = ("-created_at",)
