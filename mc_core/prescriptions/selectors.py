from __future__ import annotations

from django.db.models import QuerySet

from mc_core.common.errors import AuthorizationError
from mc_core.common.transitions import load_or_404
from mc_core.iam.models import User, UserRole
from mc_core.prescriptions.models import Prescription


def prescriptions_qs() -> QuerySet[Prescription]:
    return Prescription.objects.select_related("patient", "provider", "pharmacy").order_by("-created_at")


def visible_prescriptions(*, user: User) -> QuerySet[Prescription]:
    qs = prescriptions_qs()
    if user.is_admin:
        return qs
    if user.role in (UserRole.GP, UserRole.SPECIALIST):
        return qs.filter(provider_id=user.id)
    if user.role == UserRole.PHARMACY:
        return qs.filter(pharmacy_id=user.id)
    return qs.filter(patient_id=user.id)


def get_prescription_for_user(*, prescription_id, user: User) -> Prescription:
    p = load_or_404(Prescription, pk=prescription_id, label="Prescription",
                    select_related=("patient", "provider", "pharmacy"))
    if user.is_admin or user.id in (p.patient_id, p.provider_id, p.pharmacy_id):
        return p
    raise AuthorizationError("You do not have access to this prescription.")
