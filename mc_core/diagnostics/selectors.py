from __future__ import annotations

from django.db.models import Q, QuerySet

from mc_core.common.errors import AuthorizationError
from mc_core.common.transitions import load_or_404
from mc_core.diagnostics.models import DiagnosticOrder, DiagnosticOrderStatus
from mc_core.iam.models import User, UserRole


def orders_qs() -> QuerySet[DiagnosticOrder]:
    return DiagnosticOrder.objects.select_related("patient", "doctor", "diagnostic_center").order_by("-created_at")


def visible_orders(*, user: User) -> QuerySet[DiagnosticOrder]:
    qs = orders_qs()
    if user.is_admin:
        return qs
    if user.role in (UserRole.GP, UserRole.SPECIALIST):
        return qs.filter(doctor_id=user.id)
    if user.role == UserRole.DIAGNOSTIC_CENTER:
        # assigned plus the unclaimed pool
        return qs.filter(
            Q(diagnostic_center_id=user.id)
            | Q(diagnostic_center__isnull=True, status=DiagnosticOrderStatus.PENDING)
        )
    return qs.filter(patient_id=user.id)


def get_order_for_user(*, order_id, user: User) -> DiagnosticOrder:
    o = load_or_404(DiagnosticOrder, pk=order_id, label="Diagnostic order",
                    select_related=("patient", "doctor", "diagnostic_center"))
    if user.is_admin or user.id in (o.patient_id, o.doctor_id, o.diagnostic_center_id):
        return o
    if o.diagnostic_center_id is None and user.role == UserRole.DIAGNOSTIC_CENTER:
        return o
    raise AuthorizationError("You do not have access to this diagnostic order.")
