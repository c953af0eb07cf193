import uuid

import pytest
from django.core import mail

from mc_core.applications.models import (
    ApplicationAuditLog,
    ApplicationStatus,
    ApplicationType,
    AuditAction,
    ProviderApplication,
)
from mc_core.applications.services import ApplicationService
from mc_core.common.errors import ConflictError, NotFoundError, ValidationError
from mc_core.iam.models import UserRole
from mc_core.notifications.models import Notification, NotificationType

pytestmark = pytest.mark.django_db


def _submit_gp(email="doc@example.com"):
    return ApplicationService.submit_provider_application(
        name="Doc Tor",
        email=email,
        password="Secret123",
        phone_number="5551234567",
        provider_type="gp",
        license_number="GP-001",
    )


def test_submission_creates_inactive_account():
    app = _submit_gp()

    assert app.status == ApplicationStatus.PENDING
    assert app.user.role == ""
    assert app.user.email_verified is False
    assert ApplicationAuditLog.objects.filter(application_id=app.id, action=AuditAction.SUBMITTED).count() == 1


def test_specialist_requires_specialization():
    with pytest.raises(ValidationError) as exc:
        ApplicationService.submit_provider_application(
            name="Spec Ialist",
            email="spec@example.com",
            password="Secret123",
            phone_number="5551234567",
            provider_type="specialist",
            license_number="SP-001",
        )
    assert exc.value.details == {"field": "specialization"}


def test_partner_requires_phone():
    with pytest.raises(ValidationError) as exc:
        ApplicationService.submit_partner_application(
            name="Pharm Acy",
            email="pharm@example.com",
            password="Secret123",
            phone_number="123",
            partner_type="pharmacy",
            business_name="Corner Pharmacy",
            license_number="PH-1",
        )
    assert exc.value.details == {"field": "phone_number"}


def test_duplicate_email_conflicts(make_user):
    make_user(email="doc@example.com")
    with pytest.raises(ConflictError):
        _submit_gp(email="doc@example.com")
    assert ProviderApplication.objects.count() == 0


def test_approve_activates_role_and_emails(admin_user, django_capture_on_commit_callbacks):
    app = _submit_gp()

    with django_capture_on_commit_callbacks(execute=True):
        ApplicationService.approve_application(
            application_type=ApplicationType.PROVIDER,
            application_id=app.id,
            admin_id=admin_user.id,
        )

    app.refresh_from_db()
    app.user.refresh_from_db()
    assert app.status == ApplicationStatus.APPROVED
    assert app.reviewed_by_id == admin_user.id
    assert app.verified_at is not None
    assert app.user.role == UserRole.GP
    assert app.user.email_verified is True

    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == ["doc@example.com"]
    assert Notification.objects.filter(user=app.user, type=NotificationType.APPLICATION_APPROVED).count() == 1


def test_second_review_conflicts_and_sends_nothing(admin_user, django_capture_on_commit_callbacks):
    app = _submit_gp()
    ApplicationService.approve_application(
        application_type=ApplicationType.PROVIDER, application_id=app.id, admin_id=admin_user.id
    )

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(ConflictError):
            ApplicationService.reject_application(
                application_type=ApplicationType.PROVIDER,
                application_id=app.id,
                admin_id=admin_user.id,
                reason="Late",
            )

    assert callbacks == []
    app.refresh_from_db()
    assert app.status == ApplicationStatus.APPROVED


def test_reject_requires_reason(admin_user):
    app = _submit_gp()
    with pytest.raises(ValidationError):
        ApplicationService.reject_application(
            application_type=ApplicationType.PROVIDER, application_id=app.id, admin_id=admin_user.id, reason="  "
        )


def test_reject_keeps_account_inactive(admin_user, django_capture_on_commit_callbacks):
    app = _submit_gp()

    with django_capture_on_commit_callbacks(execute=True):
        ApplicationService.reject_application(
            application_type=ApplicationType.PROVIDER,
            application_id=app.id,
            admin_id=admin_user.id,
            reason="License could not be verified",
        )

    app.refresh_from_db()
    app.user.refresh_from_db()
    assert app.status == ApplicationStatus.REJECTED
    assert app.rejection_reason == "License could not be verified"
    assert app.user.role == ""
    assert "License could not be verified" in mail.outbox[0].body


def test_unknown_application_type(admin_user):
    with pytest.raises(ValidationError):
        ApplicationService.approve_application(application_type="hospital", application_id=uuid.uuid4(),
                                               admin_id=admin_user.id)


def test_unknown_application_id(admin_user):
    with pytest.raises(NotFoundError):
        ApplicationService.approve_application(application_type="partner", application_id=uuid.uuid4(),
                                               admin_id=admin_user.id)


def test_email_failure_does_not_undo_approval(admin_user, monkeypatch, django_capture_on_commit_callbacks):
    from mc_core.applications import emails

    def boom(*args, **kwargs):
        raise OSError("smtp down")

    monkeypatch.setattr(emails, "send_mail", boom)
    app = _submit_gp()

    with django_capture_on_commit_callbacks(execute=True):
        ApplicationService.approve_application(
            application_type=ApplicationType.PROVIDER, application_id=app.id, admin_id=admin_user.id
        )

    app.refresh_from_db()
    assert app.status == ApplicationStatus.APPROVED
