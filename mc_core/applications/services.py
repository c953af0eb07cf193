from __future__ import annotations

import logging
from decimal import Decimal
from functools import partial
from typing import Type

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from mc_core.applications import emails
from mc_core.applications.models import (
    ApplicationAuditLog,
    ApplicationStatus,
    ApplicationType,
    AuditAction,
    PartnerApplication,
    PartnerType,
    ProviderApplication,
    ProviderType,
)
from mc_core.common.errors import ConflictError, NotFoundError, ValidationError
from mc_core.iam.models import User
from mc_core.iam.services.signup import create_account, validate_identity
from mc_core.notifications.models import EntityType, NotificationType
from mc_core.notifications.services import NotificationService

logger = logging.getLogger(__name__)


def _model_for(application_type: str) -> Type[ProviderApplication] | Type[PartnerApplication]:
    if application_type == ApplicationType.PROVIDER:
        return ProviderApplication
    if application_type == ApplicationType.PARTNER:
        return PartnerApplication
    raise ValidationError(
        "Invalid application type. Must be 'provider' or 'partner'.",
        details={"field": "application_type"},
    )


def _activated_role(app) -> str:
    if isinstance(app, ProviderApplication):
        return app.provider_type
    return app.partner_type


def _audit(*, app, application_type: str, action: str, performed_by_id, details: dict | None = None) -> None:
    ApplicationAuditLog.objects.create(
        application_id=app.id,
        application_type=application_type,
        action=action,
        performed_by_id=performed_by_id,
        details=details or {},
    )


class ApplicationService:
    """
    Provider/partner intake. Submission creates an inactive account (no role, unverified)
    plus a pending application in one transaction. Review is a compare-and-set on
    status == pending; exactly one reviewer wins.
    """

    @staticmethod
    @transaction.atomic
    def submit_provider_application(
        *,
        name: str,
        email: str,
        password: str,
        phone_number: str,
        provider_type: str,
        license_number: str,
        specialization: str = "",
        qualifications: str = "",
        experience_years: int = 0,
        hospital_affiliation: str = "",
        consultation_fee: Decimal | None = None,
    ) -> ProviderApplication:
        if provider_type not in ProviderType.values:
            raise ValidationError("Invalid provider type. Must be 'gp' or 'specialist'.",
                                  details={"field": "provider_type"})
        if not (license_number or "").strip():
            raise ValidationError("License number is required.", details={"field": "license_number"})
        if provider_type == ProviderType.SPECIALIST and not (specialization or "").strip():
            raise ValidationError("Specialization is required for specialists.", details={"field": "specialization"})
        if experience_years is not None and experience_years < 0:
            raise ValidationError("Experience years cannot be negative.", details={"field": "experience_years"})

        validate_identity(name=name, email=email, password=password, phone_number=phone_number, require_phone=True)
        user = create_account(email=email, password=password, name=name, phone_number=phone_number)

        app = ProviderApplication.objects.create(
            user=user,
            provider_type=provider_type,
            license_number=license_number.strip(),
            specialization=(specialization or "").strip(),
            qualifications=qualifications or "",
            experience_years=experience_years or 0,
            hospital_affiliation=hospital_affiliation or "",
            consultation_fee=consultation_fee,
        )
        _audit(
            app=app,
            application_type=ApplicationType.PROVIDER,
            action=AuditAction.SUBMITTED,
            performed_by_id=user.id,
            details={"provider_type": provider_type},
        )

        logger.info("provider application submitted", extra={"application_id": str(app.id)})
        return app

    @staticmethod
    @transaction.atomic
    def submit_partner_application(
        *,
        name: str,
        email: str,
        password: str,
        phone_number: str,
        partner_type: str,
        business_name: str,
        license_number: str,
        address: str = "",
    ) -> PartnerApplication:
        if partner_type not in PartnerType.values:
            raise ValidationError("Invalid partner type. Must be 'pharmacy' or 'diagnostic_center'.",
                                  details={"field": "partner_type"})
        if not (business_name or "").strip():
            raise ValidationError("Business name is required.", details={"field": "business_name"})
        if not (license_number or "").strip():
            raise ValidationError("License number is required.", details={"field": "license_number"})

        validate_identity(name=name, email=email, password=password, phone_number=phone_number, require_phone=True)
        user = create_account(email=email, password=password, name=name, phone_number=phone_number)

        app = PartnerApplication.objects.create(
            user=user,
            partner_type=partner_type,
            business_name=business_name.strip(),
            license_number=license_number.strip(),
            address=address or "",
        )
        _audit(
            app=app,
            application_type=ApplicationType.PARTNER,
            action=AuditAction.SUBMITTED,
            performed_by_id=user.id,
            details={"partner_type": partner_type},
        )

        logger.info("partner application submitted", extra={"application_id": str(app.id)})
        return app

    @staticmethod
    def _claim_review(*, model, application_id, **changes):
        """
        Guarded pending -> terminal update. Returns the re-read application.
        """
        now = timezone.now()
        try:
            updated = model.objects.filter(id=application_id, status=ApplicationStatus.PENDING).update(
                updated_at=now, **changes
            )
        except (DjangoValidationError, ValueError):
            raise NotFoundError("Application not found.")

        if not updated:
            if model.objects.filter(id=application_id).exists():
                raise ConflictError("Application has already been reviewed.")
            raise NotFoundError("Application not found.")

        return model.objects.select_related("user").get(id=application_id)

    @staticmethod
    @transaction.atomic
    def approve_application(*, application_type: str, application_id, admin_id) -> ProviderApplication | PartnerApplication:
        model = _model_for(application_type)
        now = timezone.now()

        app = ApplicationService._claim_review(
            model=model,
            application_id=application_id,
            status=ApplicationStatus.APPROVED,
            verified_at=now,
            reviewed_by_id=admin_id,
        )

        role = _activated_role(app)
        User.objects.filter(id=app.user_id).update(role=role, email_verified=True, email_verified_at=now)
        app.user.refresh_from_db()

        _audit(
            app=app,
            application_type=application_type,
            action=AuditAction.APPROVED,
            performed_by_id=admin_id,
            details={"role": role},
        )
        NotificationService.notify(
            user_id=app.user_id,
            notification_type=NotificationType.APPLICATION_APPROVED,
            entity_type=EntityType.APPLICATION,
            entity_id=app.id,
            title="Application approved",
            message="Your application has been approved. Welcome to MediConnect.",
            link="/dashboard",
        )

        transaction.on_commit(partial(
            emails.send_approval_email,
            email=app.user.email,
            name=app.user.name,
            application_type=application_type,
        ))

        logger.info("application approved", extra={"application_id": str(app.id), "role": role})
        return app

    @staticmethod
    @transaction.atomic
    def reject_application(*, application_type: str, application_id, admin_id, reason: str) -> ProviderApplication | PartnerApplication:
        model = _model_for(application_type)
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Rejection reason is required.", details={"field": "reason"})

        app = ApplicationService._claim_review(
            model=model,
            application_id=application_id,
            status=ApplicationStatus.REJECTED,
            rejection_reason=reason,
            reviewed_by_id=admin_id,
        )

        _audit(
            app=app,
            application_type=application_type,
            action=AuditAction.REJECTED,
            performed_by_id=admin_id,
            details={"reason": reason},
        )
        NotificationService.notify(
            user_id=app.user_id,
            notification_type=NotificationType.APPLICATION_REJECTED,
            entity_type=EntityType.APPLICATION,
            entity_id=app.id,
            title="Application not approved",
            message=reason,
        )

        transaction.on_commit(partial(
            emails.send_rejection_email,
            email=app.user.email,
            name=app.user.name,
            application_type=application_type,
            reason=reason,
        ))

        logger.info("application rejected", extra={"application_id": str(app.id)})
        return app
