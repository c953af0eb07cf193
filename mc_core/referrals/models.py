from __future__ import annotations

from django.conf import settings
from django.db import models

from mc_core.common.models import UUIDModel
from mc_core.consultations.models import Urgency


class ReferralStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    # kept for data compatibility; declines are recorded per specialist in ReferralDecline
    DECLINED = "declined", "Declined"
    COMPLETED = "completed", "Completed"


class Referral(UUIDModel):
    """
    GP -> specialist hand-off. Open to every matching specialist until one accepts;
    accepting creates the follow-on Consultation stored in `consultation`.
    """
    patient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="referrals",
    )
    referring_provider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="referrals_made",
    )
    specialist = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="referrals_received",
    )

    specialization = models.CharField(max_length=128, db_index=True)
    reason = models.TextField()
    medical_history = models.TextField(blank=True, default="")
    urgency = models.CharField(max_length=16, choices=Urgency.choices, default=Urgency.ROUTINE)
    notes = models.TextField(blank=True, default="")

    status = models.CharField(
        max_length=16,
        choices=ReferralStatus.choices,
        default=ReferralStatus.PENDING,
        db_index=True,
    )

    source_consultation = models.ForeignKey(
        "consultations.Consultation",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="referrals_made",
    )
    consultation = models.OneToOneField(
        "consultations.Consultation",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="referral",
    )

    accepted_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["status", "specialization"]),
            models.Index(fields=["referring_provider", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"Referral {self.id} ({self.status})"


class ReferralDecline(UUIDModel):
    referral = models.ForeignKey(Referral, on_delete=models.CASCADE, related_name="declines")
    specialist = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="declined_referrals",
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["referral", "specialist"], name="uq_referral_decline_once"),
        ]
