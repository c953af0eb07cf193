from __future__ import annotations

from django.conf import settings
from django.db import models

from mc_core.common.models import UUIDModel


class ApplicationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class ApplicationType(models.TextChoices):
    PROVIDER = "provider", "Provider"
    PARTNER = "partner", "Partner"


class ProviderType(models.TextChoices):
    GP = "gp", "General Practitioner"
    SPECIALIST = "specialist", "Specialist"


class PartnerType(models.TextChoices):
    PHARMACY = "pharmacy", "Pharmacy"
    DIAGNOSTIC_CENTER = "diagnostic_center", "Diagnostic Center"


class ProviderApplication(UUIDModel):
    """
    A doctor's request to practise on the platform. pending -> approved | rejected, both terminal.
    Approval is what activates the user's role and makes them eligible for fan-out.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="provider_application",
    )
    provider_type = models.CharField(max_length=16, choices=ProviderType.choices, db_index=True)

    license_number = models.CharField(max_length=64)
    specialization = models.CharField(max_length=128, blank=True, default="", db_index=True)
    qualifications = models.TextField(blank=True, default="")
    experience_years = models.PositiveIntegerField(default=0)
    hospital_affiliation = models.CharField(max_length=255, blank=True, default="")
    consultation_fee = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    status = models.CharField(
        max_length=16,
        choices=ApplicationStatus.choices,
        default=ApplicationStatus.PENDING,
        db_index=True,
    )
    rejection_reason = models.TextField(blank=True, default="")
    verified_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )

    class Meta:
        indexes = [
            models.Index(fields=["provider_type", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.provider_type}:{self.user_id} ({self.status})"


class PartnerApplication(UUIDModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="partner_application",
    )
    partner_type = models.CharField(max_length=24, choices=PartnerType.choices, db_index=True)

    business_name = models.CharField(max_length=255)
    license_number = models.CharField(max_length=64)
    address = models.TextField(blank=True, default="")

    status = models.CharField(
        max_length=16,
        choices=ApplicationStatus.choices,
        default=ApplicationStatus.PENDING,
        db_index=True,
    )
    rejection_reason = models.TextField(blank=True, default="")
    verified_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )

    class Meta:
        indexes = [
            models.Index(fields=["partner_type", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.partner_type}:{self.business_name} ({self.status})"


class AuditAction(models.TextChoices):
    SUBMITTED = "submitted", "Submitted"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class ApplicationAuditLog(UUIDModel):
    """
    Append-only trail of application transitions. Links stay loose so one table
    serves both application kinds.
    """
    application_id = models.UUIDField(db_index=True)
    application_type = models.CharField(max_length=16, choices=ApplicationType.choices)
    action = models.CharField(max_length=16, choices=AuditAction.choices)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    details = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["application_type", "application_id"]),
        ]
