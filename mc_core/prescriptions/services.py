from __future__ import annotations

import logging
import secrets
from typing import Any

from django.db import transaction
from django.utils import timezone

from mc_core.common.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from mc_core.common.transitions import compare_and_set, load_or_404
from mc_core.consultations.models import Consultation, ConsultationStatus
from mc_core.iam.models import User, UserRole
from mc_core.iam.selectors import get_user_with_role
from mc_core.notifications.models import EntityType, NotificationType
from mc_core.notifications.services import NotificationService
from mc_core.prescriptions.models import (
    FULFILLMENT_ORDER,
    TERMINAL_STATUSES,
    Prescription,
    PrescriptionStatus,
)

logger = logging.getLogger(__name__)

REQUIRED_MEDICATION_FIELDS = ("name", "dosage", "frequency", "duration")
FULFILLMENT_STATUSES = (
    PrescriptionStatus.PREPARING,
    PrescriptionStatus.READY,
    PrescriptionStatus.DELIVERED,
    PrescriptionStatus.CANCELLED,
)

# a prescription can be written once the doctor owns the consultation
PRESCRIBABLE_CONSULTATION_STATUSES = (
    ConsultationStatus.ACCEPTED,
    ConsultationStatus.IN_PROGRESS,
    ConsultationStatus.COMPLETED,
)

_FULFILLMENT_MESSAGES = {
    PrescriptionStatus.PREPARING: (NotificationType.PRESCRIPTION_PREPARING, "Prescription Being Prepared",
                                   "{pharmacy} is preparing your prescription."),
    PrescriptionStatus.READY: (NotificationType.PRESCRIPTION_READY, "Prescription Ready",
                               "Your prescription is ready for pickup at {pharmacy}."),
    PrescriptionStatus.DELIVERED: (NotificationType.PRESCRIPTION_DELIVERED, "Prescription Delivered",
                                   "Your prescription from {pharmacy} has been delivered."),
    PrescriptionStatus.CANCELLED: (NotificationType.PRESCRIPTION_CANCELLED, "Prescription Cancelled",
                                   "{pharmacy} has cancelled your prescription order."),
}


def generate_qr_token() -> str:
    return secrets.token_urlsafe(24)


def validate_medications(medications: Any) -> list[dict]:
    if not isinstance(medications, list) or not medications:
        raise ValidationError("At least one medication is required.", details={"field": "medications"})

    cleaned = []
    for idx, med in enumerate(medications):
        if not isinstance(med, dict):
            raise ValidationError("Each medication must be an object.", details={"field": "medications", "index": idx})
        missing = [f for f in REQUIRED_MEDICATION_FIELDS if not str(med.get(f) or "").strip()]
        if missing:
            raise ValidationError(
                "Each medication must have name, dosage, frequency, and duration.",
                details={"field": "medications", "index": idx, "missing": missing},
            )
        item = {f: str(med[f]).strip() for f in REQUIRED_MEDICATION_FIELDS}
        if med.get("instructions"):
            item["instructions"] = str(med["instructions"]).strip()
        cleaned.append(item)
    return cleaned


def allowed_previous_statuses(target: str) -> list[str]:
    if target == PrescriptionStatus.CANCELLED:
        return [s for s in FULFILLMENT_ORDER if s not in TERMINAL_STATUSES]
    return FULFILLMENT_ORDER[: FULFILLMENT_ORDER.index(target)]


def _load(prescription_id) -> Prescription:
    return load_or_404(
        Prescription,
        pk=prescription_id,
        label="Prescription",
        select_related=("patient", "provider", "pharmacy"),
    )


def _get_pharmacy(pharmacy_id) -> User:
    return get_user_with_role(user_id=pharmacy_id, roles=(UserRole.PHARMACY,), label="Pharmacy")


def _claim_for_pharmacy(prescription: Prescription, pharmacy: User) -> bool:
    """
    The one claim path shared by patient assignment and QR scan.

    Returns True when this call set the pharmacy, False when the same pharmacy already
    held it (idempotent repeat). Any other holder is a ConflictError.
    """
    won = compare_and_set(
        Prescription,
        pk=prescription.id,
        guard={"pharmacy__isnull": True, "status": PrescriptionStatus.PENDING},
        changes={"pharmacy_id": pharmacy.id},
        label="Prescription",
    )
    if won:
        return True

    current = _load(prescription.id)
    if current.pharmacy_id == pharmacy.id:
        return False
    if current.pharmacy_id is not None:
        raise ConflictError("This prescription has already been claimed by another pharmacy.")
    raise ConflictError(
        f"Prescription cannot be claimed while {current.status}.",
        details={"status": current.status},
    )


class PrescriptionService:
    @staticmethod
    @transaction.atomic
    def create_prescription(
        *,
        consultation_id,
        patient_id,
        provider_id,
        medications: list[dict],
        diagnosis: str = "",
        notes: str = "",
    ) -> Prescription:
        meds = validate_medications(medications)

        consultation = load_or_404(Consultation, pk=consultation_id, label="Consultation")
        if str(consultation.provider_id) != str(provider_id):
            raise AuthorizationError("Only the consultation's provider can issue a prescription.")
        if str(consultation.patient_id) != str(patient_id):
            raise AuthorizationError("Patient does not match the consultation.")
        if consultation.status not in PRESCRIBABLE_CONSULTATION_STATUSES:
            raise ConflictError(
                f"Cannot prescribe for a consultation that is {consultation.status}.",
                details={"status": consultation.status},
            )

        p = Prescription.objects.create(
            consultation=consultation,
            patient_id=consultation.patient_id,
            provider_id=consultation.provider_id,
            qr_token=generate_qr_token(),
            status=PrescriptionStatus.PENDING,
            medications=meds,
            diagnosis=diagnosis or "",
            notes=notes or "",
        )

        # issuing closes a live consultation; other states are left alone
        compare_and_set(
            Consultation,
            pk=consultation.id,
            guard={"status": ConsultationStatus.IN_PROGRESS},
            changes={"status": ConsultationStatus.COMPLETED, "completed_at": timezone.now()},
            label="Consultation",
        )

        p = _load(p.id)
        NotificationService.notify(
            user_id=p.patient_id,
            notification_type=NotificationType.PRESCRIPTION_CREATED,
            entity_type=EntityType.PRESCRIPTION,
            entity_id=p.id,
            title="New Prescription",
            message=f"Dr. {p.provider.name} has issued you a prescription with {len(meds)} medication(s).",
            link=f"/patient/prescriptions/{p.id}",
        )

        logger.info("prescription created", extra={"prescription_id": str(p.id), "consultation_id": str(consultation.id)})
        return p

    @staticmethod
    @transaction.atomic
    def assign_pharmacy(*, prescription_id, patient_id, pharmacy_id) -> Prescription:
        p = _load(prescription_id)
        if str(p.patient_id) != str(patient_id):
            raise AuthorizationError("Only the patient can choose a pharmacy for this prescription.")

        pharmacy = _get_pharmacy(pharmacy_id)
        claimed = _claim_for_pharmacy(p, pharmacy)

        p = _load(p.id)
        if claimed:
            NotificationService.notify(
                user_id=pharmacy.id,
                notification_type=NotificationType.PRESCRIPTION_ASSIGNED,
                entity_type=EntityType.PRESCRIPTION,
                entity_id=p.id,
                title="New Prescription Assigned",
                message=f"{p.patient.name} has sent you a prescription to fulfill.",
                link=f"/pharmacy/prescriptions/{p.id}",
            )
            logger.info("prescription assigned", extra={"prescription_id": str(p.id), "pharmacy_id": str(pharmacy.id)})
        return p

    @staticmethod
    @transaction.atomic
    def claim_by_qr(*, qr_token: str, pharmacy_id) -> tuple[Prescription, bool]:
        """
        Returns (prescription, claimed_now). A repeat scan by the holder is a no-op.
        """
        if not qr_token or not qr_token.strip():
            raise ValidationError("QR token is required.", details={"field": "qr_token"})

        pharmacy = _get_pharmacy(pharmacy_id)

        p = Prescription.objects.filter(qr_token=qr_token.strip()).first()
        if p is None:
            raise NotFoundError("Invalid QR code. Prescription not found.")

        claimed = _claim_for_pharmacy(p, pharmacy)

        p = _load(p.id)
        if claimed:
            NotificationService.notify(
                user_id=p.patient_id,
                notification_type=NotificationType.PRESCRIPTION_CLAIMED,
                entity_type=EntityType.PRESCRIPTION,
                entity_id=p.id,
                title="Prescription Claimed",
                message=f"{pharmacy.name} has received your prescription.",
                link=f"/patient/prescriptions/{p.id}",
            )
            logger.info("prescription claimed by qr", extra={"prescription_id": str(p.id), "pharmacy_id": str(pharmacy.id)})
        return p, claimed

    @staticmethod
    @transaction.atomic
    def update_fulfillment_status(*, prescription_id, pharmacy_id, status: str, notes: str = "") -> Prescription:
        if status not in FULFILLMENT_STATUSES:
            raise ValidationError(
                "Invalid status. Must be: preparing, ready, delivered, or cancelled.",
                details={"field": "status"},
            )

        p = _load(prescription_id)
        if p.pharmacy_id is None or str(p.pharmacy_id) != str(pharmacy_id):
            raise AuthorizationError("Only the assigned pharmacy can update this prescription.")
        if p.status not in allowed_previous_statuses(status):
            raise ConflictError(
                f"Cannot move prescription from '{p.status}' to '{status}'.",
                details={"from": p.status, "to": status},
            )

        changes: dict[str, Any] = {"status": status}
        if status == PrescriptionStatus.DELIVERED:
            changes["fulfilled_at"] = timezone.now()
        if notes:
            changes["pharmacy_notes"] = f"{p.pharmacy_notes}\n{notes}".strip()

        won = compare_and_set(
            Prescription,
            pk=p.id,
            guard={"pharmacy_id": p.pharmacy_id, "status": p.status},
            changes=changes,
            label="Prescription",
        )
        if not won:
            raise ConflictError("Prescription was updated concurrently. Reload and try again.")

        p = _load(p.id)
        notification_type, title, template = _FULFILLMENT_MESSAGES[status]
        NotificationService.notify(
            user_id=p.patient_id,
            notification_type=notification_type,
            entity_type=EntityType.PRESCRIPTION,
            entity_id=p.id,
            title=title,
            message=template.format(pharmacy=p.pharmacy.name),
            link=f"/patient/prescriptions/{p.id}",
            metadata={"status": status},
        )

        logger.info("prescription fulfillment updated", extra={"prescription_id": str(p.id), "status": status})
        return p
