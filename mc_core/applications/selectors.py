from __future__ import annotations

from django.conf import settings
from django.db.models import QuerySet

from mc_core.applications.models import ApplicationStatus, PartnerApplication, ProviderApplication
from mc_core.iam.models import User, UserRole


def fanout_limit() -> int:
    return int(getattr(settings, "MC_FANOUT_LIMIT", 20))


class ProviderDirectory:
    """
    Recipient queries for notification fan-out.

    Every query is capped at MC_FANOUT_LIMIT and ordered by earliest date_joined, then id,
    so the same request always reaches the same recipients.
    """

    @staticmethod
    def _bounded(qs: QuerySet[User]) -> list[User]:
        return list(qs.order_by("date_joined", "id")[: fanout_limit()])

    @staticmethod
    def eligible_providers(*, provider_type: str) -> list[User]:
        qs = User.objects.filter(
            role=provider_type,
            is_active=True,
            email_verified=True,
            provider_application__provider_type=provider_type,
            provider_application__status=ApplicationStatus.APPROVED,
        )
        return ProviderDirectory._bounded(qs)

    @staticmethod
    def specialists_for(*, specialization: str) -> list[User]:
        qs = User.objects.filter(
            role=UserRole.SPECIALIST,
            is_active=True,
            email_verified=True,
            provider_application__provider_type=UserRole.SPECIALIST,
            provider_application__status=ApplicationStatus.APPROVED,
            provider_application__specialization__icontains=specialization.strip(),
        ).select_related("provider_application")
        return ProviderDirectory._bounded(qs)

    @staticmethod
    def diagnostic_centers() -> list[User]:
        qs = User.objects.filter(role=UserRole.DIAGNOSTIC_CENTER, is_active=True)
        return ProviderDirectory._bounded(qs)

    @staticmethod
    def specialization_of(user: User) -> str:
        app = ProviderApplication.objects.filter(user_id=user.id).only("specialization").first()
        return app.specialization if app else ""

    @staticmethod
    def covers_specialization(user: User, specialization: str) -> bool:
        """
        Same substring rule as specialists_for: the requested specialization must appear
        in the specialist's own, case-insensitively.
        """
        wanted = (specialization or "").strip().lower()
        own = ProviderDirectory.specialization_of(user).lower()
        return bool(wanted) and bool(own) and wanted in own


def provider_applications_qs(*, status: str | None = None) -> QuerySet[ProviderApplication]:
    qs = ProviderApplication.objects.select_related("user").order_by("-created_at")
    if status:
        qs = qs.filter(status=status)
    return qs


def partner_applications_qs(*, status: str | None = None) -> QuerySet[PartnerApplication]:
    qs = PartnerApplication.objects.select_related("user").order_by("-created_at")
    if status:
        qs = qs.filter(status=status)
    return qs
