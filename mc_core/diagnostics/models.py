from __future__ import annotations

from django.conf import settings
from django.db import models

from mc_core.common.models import UUIDModel
from mc_core.consultations.models import Urgency


class DiagnosticOrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    SCHEDULED = "scheduled", "Scheduled"
    SAMPLE_COLLECTED = "sample_collected", "Sample Collected"
    IN_PROGRESS = "in_progress", "In Progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


STATUS_ORDER = [
    DiagnosticOrderStatus.PENDING,
    DiagnosticOrderStatus.SCHEDULED,
    DiagnosticOrderStatus.SAMPLE_COLLECTED,
    DiagnosticOrderStatus.IN_PROGRESS,
    DiagnosticOrderStatus.COMPLETED,
]
TERMINAL_STATUSES = {DiagnosticOrderStatus.COMPLETED, DiagnosticOrderStatus.CANCELLED}


class DiagnosticOrder(UUIDModel):
    """
    Test order placed by a doctor. diagnostic_center is either named at creation or
    claimed by the first center that updates the order.
    """
    patient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="diagnostic_orders",
    )
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="ordered_diagnostics",
    )
    diagnostic_center = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="center_diagnostic_orders",
    )
    consultation = models.ForeignKey(
        "consultations.Consultation",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="diagnostic_orders",
    )

    test_types = models.JSONField(default=list)
    special_instructions = models.TextField(blank=True, default="")
    urgency = models.CharField(max_length=16, choices=Urgency.choices, default=Urgency.ROUTINE, db_index=True)

    status = models.CharField(
        max_length=24,
        choices=DiagnosticOrderStatus.choices,
        default=DiagnosticOrderStatus.PENDING,
        db_index=True,
    )

    scheduled_date = models.DateField(null=True, blank=True)
    scheduled_time = models.TimeField(null=True, blank=True)
    scheduled_at = models.DateTimeField(null=True, blank=True)

    results_url = models.URLField(max_length=1024, blank=True, default="")
    results_notes = models.TextField(blank=True, default="")
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["status", "diagnostic_center"]),
            models.Index(fields=["patient", "created_at"]),
            models.Index(fields=["doctor", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"DiagnosticOrder {self.id} ({self.status})"
