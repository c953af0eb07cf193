from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from mc_core.applications.selectors import ProviderDirectory
from mc_core.common.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from mc_core.common.transitions import compare_and_set, load_or_404
from mc_core.consultations.models import Consultation, ConsultationStatus, Urgency
from mc_core.consultations.services import default_fee
from mc_core.iam.models import User, UserRole
from mc_core.iam.selectors import get_user, get_user_with_role
from mc_core.notifications.models import EntityType, NotificationType
from mc_core.notifications.services import NotificationService
from mc_core.referrals.models import Referral, ReferralDecline, ReferralStatus

logger = logging.getLogger(__name__)

ACCEPT = "accept"
DECLINE = "decline"


def _load(referral_id) -> Referral:
    return load_or_404(
        Referral,
        pk=referral_id,
        label="Referral",
        select_related=("patient", "referring_provider", "specialist"),
    )


def _notify(referral: Referral, *, user_id, notification_type: str, title: str, message: str, link: str) -> None:
    NotificationService.notify(
        user_id=user_id,
        notification_type=notification_type,
        entity_type=EntityType.REFERRAL,
        entity_id=referral.id,
        title=title,
        message=message,
        link=link,
    )


class ReferralService:
    @staticmethod
    @transaction.atomic
    def create_referral(
        *,
        patient_id,
        referring_provider_id,
        specialization: str,
        reason: str,
        medical_history: str = "",
        urgency: str = Urgency.ROUTINE,
        source_consultation_id=None,
    ) -> tuple[Referral, list[User]]:
        """
        Opens a referral to every approved specialist whose specialization matches.
        No match means nothing is written.
        """
        specialization = (specialization or "").strip()
        if not specialization:
            raise ValidationError("Specialization is required.", details={"field": "specialization"})
        if not reason or not reason.strip():
            raise ValidationError("Reason is required.", details={"field": "reason"})
        if urgency not in Urgency.values:
            raise ValidationError(f"Invalid urgency. Must be one of: {', '.join(Urgency.values)}.",
                                  details={"field": "urgency"})

        gp = get_user_with_role(user_id=referring_provider_id, roles=(UserRole.GP,), label="Referring provider")
        patient = get_user(user_id=patient_id, label="Patient")

        source = None
        if source_consultation_id:
            source = Consultation.objects.filter(id=source_consultation_id, patient_id=patient.id).first()
            if source is None:
                raise NotFoundError("Consultation not found or does not belong to patient.")

        specialists = ProviderDirectory.specialists_for(specialization=specialization)
        if not specialists:
            raise NotFoundError(f"No specialists found for specialization: {specialization}")

        referral = Referral.objects.create(
            patient=patient,
            referring_provider=gp,
            specialization=specialization,
            reason=reason.strip(),
            medical_history=medical_history or "",
            urgency=urgency,
            source_consultation=source,
            status=ReferralStatus.PENDING,
        )

        _notify(
            referral,
            user_id=patient.id,
            notification_type=NotificationType.REFERRAL_CREATED,
            title="Referral Created",
            message=f"Dr. {gp.name} has referred you to a {specialization} specialist.",
            link="/patient/referrals",
        )
        NotificationService.notify_many(
            user_ids=[s.id for s in specialists],
            notification_type=NotificationType.REFERRAL_REQUEST,
            entity_type=EntityType.REFERRAL,
            entity_id=referral.id,
            title="New Referral",
            message=f"Dr. {gp.name} has referred {patient.name} to you.",
            link="/specialist/referrals",
            metadata={"specialization": specialization, "urgency": urgency},
        )

        logger.info(
            "referral created",
            extra={"referral_id": str(referral.id), "notified": len(specialists)},
        )
        return referral, specialists

    @staticmethod
    @transaction.atomic
    def act_on_referral(*, referral_id, specialist_id, action: str, notes: str = "") -> tuple[Referral, Consultation | None]:
        """
        accept: first specialist wins, creates the follow-on consultation.
        decline: recorded for this specialist only; the referral stays open for the others.
        """
        if action not in (ACCEPT, DECLINE):
            raise ValidationError('Invalid action. Must be "accept" or "decline".', details={"field": "action"})

        specialist = get_user_with_role(user_id=specialist_id, roles=(UserRole.SPECIALIST,), label="Specialist")
        referral = _load(referral_id)

        if not ProviderDirectory.covers_specialization(specialist, referral.specialization):
            raise AuthorizationError("This referral is for a different specialization.")

        if ReferralDecline.objects.filter(referral_id=referral.id, specialist_id=specialist.id).exists():
            raise ConflictError("You have already declined this referral.")

        if action == ACCEPT:
            return ReferralService._accept(referral=referral, specialist=specialist, notes=notes)
        return ReferralService._decline(referral=referral, specialist=specialist, notes=notes), None

    @staticmethod
    def _accept(*, referral: Referral, specialist: User, notes: str) -> tuple[Referral, Consultation]:
        now = timezone.now()
        won = compare_and_set(
            Referral,
            pk=referral.id,
            guard={"status": ReferralStatus.PENDING},
            changes={"specialist_id": specialist.id, "status": ReferralStatus.ACCEPTED, "accepted_at": now},
            label="Referral",
        )
        if not won:
            current = _load(referral.id)
            raise ConflictError(f"Referral already {current.status}.", details={"status": current.status})

        consultation = Consultation.objects.create(
            patient_id=referral.patient_id,
            provider=specialist,
            provider_type=UserRole.SPECIALIST,
            chief_complaint=f"Referral: {referral.specialization}",
            symptoms=referral.reason,
            urgency=referral.urgency,
            consultation_fee=default_fee(UserRole.SPECIALIST),
            status=ConsultationStatus.ACCEPTED,
            accepted_at=now,
            doctor_notes=f"Referred by Dr. {referral.referring_provider.name}. {notes or ''}".strip(),
        )
        Referral.objects.filter(id=referral.id).update(consultation=consultation, notes=notes or "")

        referral = _load(referral.id)
        _notify(
            referral,
            user_id=referral.patient_id,
            notification_type=NotificationType.REFERRAL_ACCEPTED,
            title="Referral Accepted",
            message=f"Dr. {specialist.name} has accepted your referral.",
            link=f"/patient/consultations/{consultation.id}",
        )
        _notify(
            referral,
            user_id=referral.referring_provider_id,
            notification_type=NotificationType.REFERRAL_ACCEPTED,
            title="Referral Accepted",
            message=f"Dr. {specialist.name} has accepted the referral of {referral.patient.name}.",
            link="/gp/referrals",
        )

        logger.info(
            "referral accepted",
            extra={"referral_id": str(referral.id), "consultation_id": str(consultation.id)},
        )
        return referral, consultation

    @staticmethod
    def _decline(*, referral: Referral, specialist: User, notes: str) -> Referral:
        # touch the row under the pending guard so a concurrent accept is observed
        won = compare_and_set(
            Referral,
            pk=referral.id,
            guard={"status": ReferralStatus.PENDING},
            changes={},
            label="Referral",
        )
        if not won:
            current = _load(referral.id)
            raise ConflictError(f"Referral already {current.status}.", details={"status": current.status})

        try:
            with transaction.atomic(savepoint=True):
                ReferralDecline.objects.create(referral=referral, specialist=specialist, notes=notes or "")
        except IntegrityError:
            raise ConflictError("You have already declined this referral.")

        hint = f"Note: {notes}" if notes else "Other specialists may still accept this referral."
        _notify(
            referral,
            user_id=referral.referring_provider_id,
            notification_type=NotificationType.REFERRAL_DECLINED,
            title="Referral Declined",
            message=(
                f"Dr. {specialist.name} has declined the referral of {referral.patient.name} "
                f"for {referral.specialization}. {hint}"
            ),
            link="/gp/referrals",
        )

        logger.info("referral declined", extra={"referral_id": str(referral.id), "specialist_id": str(specialist.id)})
        return _load(referral.id)

    @staticmethod
    @transaction.atomic
    def complete_referral(*, referral_id, specialist_id) -> Referral:
        won = compare_and_set(
            Referral,
            pk=referral_id,
            guard={"status": ReferralStatus.ACCEPTED, "specialist_id": specialist_id},
            changes={"status": ReferralStatus.COMPLETED, "completed_at": timezone.now()},
            label="Referral",
        )
        if not won:
            current = _load(referral_id)
            if current.specialist_id is not None and str(current.specialist_id) != str(specialist_id):
                raise AuthorizationError("You are not the assigned specialist for this referral.")
            raise ConflictError(
                f"Referral cannot be completed from status '{current.status}'.",
                details={"status": current.status},
            )

        referral = _load(referral_id)
        NotificationService.notify_many(
            user_ids=[referral.patient_id, referral.referring_provider_id],
            notification_type=NotificationType.REFERRAL_COMPLETED,
            entity_type=EntityType.REFERRAL,
            entity_id=referral.id,
            title="Referral Completed",
            message=f"The {referral.specialization} referral for {referral.patient.name} has been completed.",
        )

        logger.info("referral completed", extra={"referral_id": str(referral.id)})
        return referral
