from __future__ import annotations

from django.db.models import Q, QuerySet

from mc_core.common.errors import AuthorizationError
from mc_core.common.transitions import load_or_404
from mc_core.consultations.models import Consultation, ConsultationStatus
from mc_core.iam.models import User, UserRole


class ConsultationSelector:
    @staticmethod
    def base_qs() -> QuerySet[Consultation]:
        return Consultation.objects.select_related("patient", "provider").order_by("-created_at")

    @staticmethod
    def for_patient(*, patient_id) -> QuerySet[Consultation]:
        return ConsultationSelector.base_qs().filter(patient_id=patient_id)

    @staticmethod
    def for_provider(*, provider: User) -> QuerySet[Consultation]:
        """
        Consultations assigned to this doctor plus the open pool for their provider type.
        """
        return ConsultationSelector.base_qs().filter(
            Q(provider_id=provider.id) | Q(status=ConsultationStatus.PENDING, provider_type=provider.role)
        )

    @staticmethod
    def visible_to(*, user: User) -> QuerySet[Consultation]:
        if user.is_admin:
            return ConsultationSelector.base_qs()
        if user.role in (UserRole.GP, UserRole.SPECIALIST):
            return ConsultationSelector.for_provider(provider=user)
        return ConsultationSelector.for_patient(patient_id=user.id)

    @staticmethod
    def get_for_user(*, consultation_id, user: User) -> Consultation:
        c = load_or_404(Consultation, pk=consultation_id, label="Consultation", select_related=("patient", "provider"))
        if user.is_admin or c.patient_id == user.id or c.provider_id == user.id:
            return c
        if c.status == ConsultationStatus.PENDING and c.provider_type == user.role:
            return c
        raise AuthorizationError("You do not have access to this consultation.")
