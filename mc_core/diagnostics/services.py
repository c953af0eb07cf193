from __future__ import annotations

import logging
from datetime import date, time
from typing import Any

from django.db import transaction
from django.utils import timezone

from mc_core.applications.selectors import ProviderDirectory
from mc_core.common.errors import ConflictError, NotFoundError, ValidationError
from mc_core.common.transitions import compare_and_set, load_or_404
from mc_core.consultations.models import Consultation, Urgency
from mc_core.diagnostics.models import STATUS_ORDER, TERMINAL_STATUSES, DiagnosticOrder, DiagnosticOrderStatus
from mc_core.iam.models import UserRole
from mc_core.iam.selectors import get_user, get_user_with_role
from mc_core.notifications.models import EntityType, NotificationType
from mc_core.notifications.services import NotificationService

logger = logging.getLogger(__name__)


def _load(order_id) -> DiagnosticOrder:
    return load_or_404(
        DiagnosticOrder,
        pk=order_id,
        label="Diagnostic order",
        select_related=("patient", "doctor", "diagnostic_center"),
    )


def clean_test_types(test_types: Any) -> list[str]:
    if not isinstance(test_types, (list, tuple)):
        raise ValidationError("At least one test type is required.", details={"field": "test_types"})
    cleaned = [str(t).strip() for t in test_types if str(t or "").strip()]
    if not cleaned:
        raise ValidationError("At least one test type is required.", details={"field": "test_types"})
    return cleaned


def is_forward(current: str, target: str) -> bool:
    if current in TERMINAL_STATUSES:
        return False
    if target == DiagnosticOrderStatus.CANCELLED:
        return True
    if target not in STATUS_ORDER:
        return False
    return STATUS_ORDER.index(target) > STATUS_ORDER.index(current)


class DiagnosticOrderService:
    @staticmethod
    @transaction.atomic
    def create_order(
        *,
        patient_id,
        doctor_id,
        test_types: list[str],
        urgency: str = Urgency.ROUTINE,
        special_instructions: str = "",
        consultation_id=None,
        diagnostic_center_id=None,
    ) -> DiagnosticOrder:
        tests = clean_test_types(test_types)
        if urgency not in Urgency.values:
            raise ValidationError(f"Invalid urgency. Must be one of: {', '.join(Urgency.values)}.",
                                  details={"field": "urgency"})

        doctor = get_user_with_role(user_id=doctor_id, roles=(UserRole.GP, UserRole.SPECIALIST), label="Doctor")
        patient = get_user(user_id=patient_id, label="Patient")

        consultation = None
        if consultation_id:
            consultation = Consultation.objects.filter(id=consultation_id, patient_id=patient.id).first()
            if consultation is None:
                raise NotFoundError("Consultation not found or does not belong to patient.")

        center = None
        if diagnostic_center_id:
            center = get_user_with_role(
                user_id=diagnostic_center_id,
                roles=(UserRole.DIAGNOSTIC_CENTER,),
                label="Diagnostic center",
            )

        order = DiagnosticOrder.objects.create(
            patient=patient,
            doctor=doctor,
            diagnostic_center=center,
            consultation=consultation,
            test_types=tests,
            special_instructions=special_instructions or "",
            urgency=urgency,
            status=DiagnosticOrderStatus.PENDING,
        )

        summary = ", ".join(tests)
        NotificationService.notify(
            user_id=patient.id,
            notification_type=NotificationType.DIAGNOSTIC_ORDER_CREATED,
            entity_type=EntityType.DIAGNOSTIC_ORDER,
            entity_id=order.id,
            title="Diagnostic Tests Ordered",
            message=f"Dr. {doctor.name} has ordered: {summary}",
            link=f"/patient/diagnostics/{order.id}",
        )

        centers = [center] if center is not None else ProviderDirectory.diagnostic_centers()
        NotificationService.notify_many(
            user_ids=[c.id for c in centers],
            notification_type=NotificationType.DIAGNOSTIC_ORDER_REQUEST,
            entity_type=EntityType.DIAGNOSTIC_ORDER,
            entity_id=order.id,
            title="New Diagnostic Order",
            message=f"Dr. {doctor.name} ordered {summary} for {patient.name}.",
            link=f"/diagnostics/orders/{order.id}",
            metadata={"urgency": urgency, "test_types": tests},
        )

        logger.info(
            "diagnostic order created",
            extra={"order_id": str(order.id), "tests": len(tests), "notified_centers": len(centers)},
        )
        return order

    @staticmethod
    @transaction.atomic
    def update_status(
        *,
        order_id,
        center_id,
        status: str,
        scheduled_date: date | None = None,
        scheduled_time: time | None = None,
        results_url: str = "",
        results_notes: str = "",
    ) -> DiagnosticOrder:
        """
        The first center to write claims the order; every write is guarded on the claim
        and on the status that was read, so a second center or a stale update loses.
        """
        if status not in DiagnosticOrderStatus.values:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(DiagnosticOrderStatus.values)}.",
                details={"field": "status"},
            )
        if status == DiagnosticOrderStatus.SCHEDULED and not scheduled_date:
            raise ValidationError("Scheduled date is required to schedule an order.",
                                  details={"field": "scheduled_date"})
        if status == DiagnosticOrderStatus.COMPLETED and not (results_url or "").strip():
            raise ValidationError("Results URL is required to complete an order.", details={"field": "results_url"})

        center = get_user_with_role(user_id=center_id, roles=(UserRole.DIAGNOSTIC_CENTER,), label="Diagnostic center")
        order = _load(order_id)

        if order.diagnostic_center_id is not None and order.diagnostic_center_id != center.id:
            raise ConflictError("This order has already been claimed by another diagnostic center.")
        if not is_forward(order.status, status):
            raise ConflictError(
                f"Cannot move order from '{order.status}' to '{status}'.",
                details={"from": order.status, "to": status},
            )

        now = timezone.now()
        changes: dict[str, Any] = {"status": status}
        guard: dict[str, Any] = {"status": order.status}
        if order.diagnostic_center_id is None:
            guard["diagnostic_center__isnull"] = True
            changes["diagnostic_center_id"] = center.id
        else:
            guard["diagnostic_center_id"] = center.id

        if status == DiagnosticOrderStatus.SCHEDULED:
            changes.update(scheduled_date=scheduled_date, scheduled_time=scheduled_time, scheduled_at=now)
        elif status == DiagnosticOrderStatus.COMPLETED:
            changes.update(results_url=results_url.strip(), results_notes=results_notes or "", completed_at=now)

        won = compare_and_set(DiagnosticOrder, pk=order.id, guard=guard, changes=changes, label="Diagnostic order")
        if not won:
            current = _load(order.id)
            if current.diagnostic_center_id is not None and current.diagnostic_center_id != center.id:
                raise ConflictError("This order has already been claimed by another diagnostic center.")
            raise ConflictError("Order was updated concurrently. Reload and try again.",
                                details={"status": current.status})

        order = _load(order.id)
        recipients = [order.patient_id, order.doctor_id]

        if status == DiagnosticOrderStatus.SCHEDULED:
            when = f"{scheduled_date}" + (f" at {scheduled_time}" if scheduled_time else "")
            notification_type = NotificationType.DIAGNOSTIC_ORDER_SCHEDULED
            title = "Diagnostic Test Scheduled"
            message = f"{center.name} has scheduled the tests for {when}."
        elif status == DiagnosticOrderStatus.COMPLETED:
            notification_type = NotificationType.DIAGNOSTIC_ORDER_COMPLETED
            title = "Diagnostic Results Ready"
            message = f"{center.name} has completed the tests. Results are available."
        else:
            notification_type = NotificationType.DIAGNOSTIC_ORDER_UPDATED
            title = "Diagnostic Order Update"
            message = f"{center.name} updated the order status to {order.get_status_display()}."

        NotificationService.notify_many(
            user_ids=recipients,
            notification_type=notification_type,
            entity_type=EntityType.DIAGNOSTIC_ORDER,
            entity_id=order.id,
            title=title,
            message=message,
            link=f"/diagnostics/orders/{order.id}",
            metadata={"status": status, "results_url": order.results_url} if order.results_url else {"status": status},
        )

        logger.info("diagnostic order updated", extra={"order_id": str(order.id), "status": status})
        return order
