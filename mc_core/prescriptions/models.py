from __future__ import annotations

from django.conf import settings
from django.db import models

from mc_core.common.models import UUIDModel


class PrescriptionStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PREPARING = "preparing", "Preparing"
    READY = "ready", "Ready"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


# forward-only fulfillment order; cancelled sits outside it
FULFILLMENT_ORDER = [
    PrescriptionStatus.PENDING,
    PrescriptionStatus.PREPARING,
    PrescriptionStatus.READY,
    PrescriptionStatus.DELIVERED,
]
TERMINAL_STATUSES = {PrescriptionStatus.DELIVERED, PrescriptionStatus.CANCELLED}


class Prescription(UUIDModel):
    """
    Issued by the consultation's doctor. The qr_token lets any pharmacy claim it in person;
    pharmacy stays null until the first claim (patient assignment or QR scan) wins.

    medications: [{"name", "dosage", "frequency", "duration", "instructions"?}, ...]
    """
    consultation = models.ForeignKey(
        "consultations.Consultation",
        on_delete=models.PROTECT,
        related_name="prescriptions",
    )
    patient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="prescriptions",
    )
    provider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="issued_prescriptions",
    )
    pharmacy = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="pharmacy_prescriptions",
    )

    qr_token = models.CharField(max_length=64, unique=True)
    status = models.CharField(
        max_length=16,
        choices=PrescriptionStatus.choices,
        default=PrescriptionStatus.PENDING,
        db_index=True,
    )

    medications = models.JSONField(default=list)
    diagnosis = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")
    pharmacy_notes = models.TextField(blank=True, default="")

    fulfilled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["patient", "created_at"]),
            models.Index(fields=["pharmacy", "status"]),
            models.Index(fields=["provider", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"Prescription {self.id} ({self.status})"
