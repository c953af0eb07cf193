from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from mc_core.applications.models import ProviderType
from mc_core.applications.selectors import ProviderDirectory
from mc_core.common.errors import AuthorizationError, ConflictError, ValidationError
from mc_core.common.transitions import compare_and_set, load_or_404
from mc_core.consultations.models import Consultation, ConsultationStatus, Urgency
from mc_core.iam.models import UserRole
from mc_core.iam.selectors import get_user, get_user_with_role
from mc_core.notifications.models import EntityType, NotificationType
from mc_core.notifications.services import NotificationService

logger = logging.getLogger(__name__)

ACCEPT = "accept"
DECLINE = "decline"
ACTIONS = (ACCEPT, DECLINE)

# patient may withdraw before the visit starts; admin may cancel anything still open
PATIENT_CANCELLABLE = (ConsultationStatus.PENDING, ConsultationStatus.ACCEPTED)
ADMIN_CANCELLABLE = (ConsultationStatus.PENDING, ConsultationStatus.ACCEPTED, ConsultationStatus.IN_PROGRESS)


def default_fee(provider_type: str) -> Decimal:
    fees = getattr(settings, "MC_DEFAULT_CONSULTATION_FEES", {"gp": "50.00", "specialist": "100.00"})
    return Decimal(str(fees[provider_type]))


def _link(c: Consultation, role: str) -> str:
    return f"/{role}/consultations/{c.id}"


def _load(consultation_id) -> Consultation:
    return load_or_404(Consultation, pk=consultation_id, label="Consultation", select_related=("patient", "provider"))


def _explain_loss(consultation_id, *, provider_id=None, verb: str) -> None:
    """
    Called after a guarded update matched no row. Always raises.
    """
    c = _load(consultation_id)
    if provider_id is not None and c.provider_id is not None and str(c.provider_id) != str(provider_id):
        raise AuthorizationError("You are not the assigned provider for this consultation.")
    raise ConflictError(
        f"Consultation cannot be {verb} from status '{c.status}'.",
        details={"status": c.status},
    )


def _notify_patient(c: Consultation, *, notification_type: str, title: str, message: str) -> None:
    NotificationService.notify(
        user_id=c.patient_id,
        notification_type=notification_type,
        entity_type=EntityType.CONSULTATION,
        entity_id=c.id,
        title=title,
        message=message,
        link=_link(c, UserRole.PATIENT),
    )


class ConsultationService:
    @staticmethod
    @transaction.atomic
    def create_consultation(
        *,
        patient_id,
        provider_type: str,
        chief_complaint: str,
        urgency: str = Urgency.ROUTINE,
        symptoms: str = "",
        duration: str = "",
        preferred_date: date | None = None,
    ) -> Consultation:
        if not chief_complaint or not chief_complaint.strip():
            raise ValidationError("Chief complaint is required.", details={"field": "chief_complaint"})
        if provider_type not in ProviderType.values:
            raise ValidationError('Provider type must be either "gp" or "specialist".',
                                  details={"field": "provider_type"})
        if urgency not in Urgency.values:
            raise ValidationError(f"Invalid urgency. Must be one of: {', '.join(Urgency.values)}.",
                                  details={"field": "urgency"})

        patient = get_user(user_id=patient_id, label="Patient")

        c = Consultation.objects.create(
            patient=patient,
            provider_type=provider_type,
            chief_complaint=chief_complaint.strip(),
            symptoms=symptoms or "",
            duration=duration or "",
            urgency=urgency,
            preferred_date=preferred_date,
            consultation_fee=default_fee(provider_type),
            status=ConsultationStatus.PENDING,
        )

        providers = ProviderDirectory.eligible_providers(provider_type=provider_type)
        NotificationService.notify_many(
            user_ids=[p.id for p in providers],
            notification_type=NotificationType.CONSULTATION_REQUEST,
            entity_type=EntityType.CONSULTATION,
            entity_id=c.id,
            title="New Consultation Request",
            message=f"{patient.name} has requested a consultation for: {c.chief_complaint}",
            link=_link(c, provider_type),
            metadata={"urgency": urgency},
        )

        logger.info(
            "consultation created",
            extra={"consultation_id": str(c.id), "provider_type": provider_type, "notified": len(providers)},
        )
        return c

    @staticmethod
    @transaction.atomic
    def act_on_consultation(*, consultation_id, provider_id, action: str) -> Consultation:
        """
        accept | decline a pending consultation. One guarded UPDATE decides the outcome;
        a second doctor arriving after the first gets ConflictError.
        """
        if action not in ACTIONS:
            raise ValidationError('Action must be either "accept" or "decline".', details={"field": "action"})

        provider = get_user_with_role(user_id=provider_id, roles=(UserRole.GP, UserRole.SPECIALIST), label="Provider")
        now = timezone.now()

        if action == ACCEPT:
            changes = {"provider_id": provider.id, "status": ConsultationStatus.ACCEPTED, "accepted_at": now}
        else:
            changes = {"status": ConsultationStatus.DECLINED}

        won = compare_and_set(
            Consultation,
            pk=consultation_id,
            guard={"status": ConsultationStatus.PENDING, "provider_type": provider.role},
            changes=changes,
            label="Consultation",
        )
        if not won:
            c = _load(consultation_id)
            if c.status == ConsultationStatus.PENDING:
                raise AuthorizationError("This consultation is not open to your provider type.")
            raise ConflictError(
                "Consultation has already been processed.",
                details={"status": c.status},
            )

        c = _load(consultation_id)
        if action == ACCEPT:
            _notify_patient(
                c,
                notification_type=NotificationType.CONSULTATION_ACCEPTED,
                title="Consultation Accepted",
                message=f"Dr. {provider.name} has accepted your consultation request.",
            )
        else:
            _notify_patient(
                c,
                notification_type=NotificationType.CONSULTATION_DECLINED,
                title="Consultation Declined",
                message="Your consultation request was declined. Please submit a new request.",
            )

        logger.info("consultation %s", "accepted" if action == ACCEPT else "declined",
                    extra={"consultation_id": str(c.id), "provider_id": str(provider.id)})
        return c

    @staticmethod
    @transaction.atomic
    def start_consultation(*, consultation_id, provider_id) -> Consultation:
        won = compare_and_set(
            Consultation,
            pk=consultation_id,
            guard={"status": ConsultationStatus.ACCEPTED, "provider_id": provider_id},
            changes={"status": ConsultationStatus.IN_PROGRESS, "started_at": timezone.now()},
            label="Consultation",
        )
        if not won:
            _explain_loss(consultation_id, provider_id=provider_id, verb="started")

        c = _load(consultation_id)
        _notify_patient(
            c,
            notification_type=NotificationType.CONSULTATION_STARTED,
            title="Consultation Started",
            message=f"Dr. {c.provider.name} has started your consultation.",
        )
        logger.info("consultation started", extra={"consultation_id": str(c.id)})
        return c

    @staticmethod
    @transaction.atomic
    def complete_consultation(*, consultation_id, provider_id, doctor_notes: str | None = None) -> Consultation:
        changes = {"status": ConsultationStatus.COMPLETED, "completed_at": timezone.now()}
        if doctor_notes:
            changes["doctor_notes"] = doctor_notes

        won = compare_and_set(
            Consultation,
            pk=consultation_id,
            guard={"status": ConsultationStatus.IN_PROGRESS, "provider_id": provider_id},
            changes=changes,
            label="Consultation",
        )
        if not won:
            _explain_loss(consultation_id, provider_id=provider_id, verb="completed")

        c = _load(consultation_id)
        _notify_patient(
            c,
            notification_type=NotificationType.CONSULTATION_COMPLETED,
            title="Consultation Completed",
            message="Your consultation has been completed.",
        )
        logger.info("consultation completed", extra={"consultation_id": str(c.id)})
        return c

    @staticmethod
    @transaction.atomic
    def cancel_consultation(*, consultation_id, actor_id, reason: str = "") -> Consultation:
        actor = get_user(user_id=actor_id)
        c = _load(consultation_id)

        if actor.is_admin:
            allowed = ADMIN_CANCELLABLE
        elif c.patient_id == actor.id:
            allowed = PATIENT_CANCELLABLE
        else:
            raise AuthorizationError("Only the patient or an admin can cancel this consultation.")

        won = compare_and_set(
            Consultation,
            pk=consultation_id,
            guard={"status__in": allowed},
            changes={"status": ConsultationStatus.CANCELLED},
            label="Consultation",
        )
        if not won:
            _explain_loss(consultation_id, verb="cancelled")

        c = _load(consultation_id)
        recipients = []
        if c.provider_id:
            recipients.append(c.provider_id)
        if actor.id != c.patient_id:
            recipients.append(c.patient_id)

        NotificationService.notify_many(
            user_ids=recipients,
            notification_type=NotificationType.CONSULTATION_CANCELLED,
            entity_type=EntityType.CONSULTATION,
            entity_id=c.id,
            title="Consultation Cancelled",
            message=reason or "The consultation has been cancelled.",
            metadata={"cancelled_by": str(actor.id)},
        )

        logger.info("consultation cancelled", extra={"consultation_id": str(c.id), "by_admin": actor.is_admin})
        return c
