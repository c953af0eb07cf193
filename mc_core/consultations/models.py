from __future__ import annotations

from django.conf import settings
from django.db import models

from mc_core.applications.models import ProviderType
from mc_core.common.models import UUIDModel


class Urgency(models.TextChoices):
    ROUTINE = "routine", "Routine"
    URGENT = "urgent", "Urgent"
    EMERGENCY = "emergency", "Emergency"


class ConsultationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    DECLINED = "declined", "Declined"
    IN_PROGRESS = "in_progress", "In Progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


TERMINAL_STATUSES = {
    ConsultationStatus.DECLINED,
    ConsultationStatus.COMPLETED,
    ConsultationStatus.CANCELLED,
}


class Consultation(UUIDModel):
    """
    A patient's request for a doctor of a given provider_type.
    provider stays null until one doctor wins the accept.
    """
    patient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="consultations",
    )
    provider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="provided_consultations",
    )
    provider_type = models.CharField(max_length=16, choices=ProviderType.choices, db_index=True)

    chief_complaint = models.TextField()
    symptoms = models.TextField(blank=True, default="")
    duration = models.CharField(max_length=64, blank=True, default="")
    urgency = models.CharField(max_length=16, choices=Urgency.choices, default=Urgency.ROUTINE)
    preferred_date = models.DateField(null=True, blank=True)

    consultation_fee = models.DecimalField(max_digits=10, decimal_places=2)

    status = models.CharField(
        max_length=16,
        choices=ConsultationStatus.choices,
        default=ConsultationStatus.PENDING,
        db_index=True,
    )
    doctor_notes = models.TextField(blank=True, default="")

    accepted_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["status", "provider_type"]),
            models.Index(fields=["patient", "created_at"]),
            models.Index(fields=["provider", "status"]),
        ]

    def __str__(self) -> str:
        return f"Consultation {self.id} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
