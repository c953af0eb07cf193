from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from mc_core.common.models import UUIDModel


class NotificationType(models.TextChoices):
    CONSULTATION_REQUEST = "consultation_request", "Consultation request"
    CONSULTATION_ACCEPTED = "consultation_accepted", "Consultation accepted"
    CONSULTATION_DECLINED = "consultation_declined", "Consultation declined"
    CONSULTATION_STARTED = "consultation_started", "Consultation started"
    CONSULTATION_COMPLETED = "consultation_completed", "Consultation completed"
    CONSULTATION_CANCELLED = "consultation_cancelled", "Consultation cancelled"

    REFERRAL_REQUEST = "referral_request", "Referral request"
    REFERRAL_CREATED = "referral_created", "Referral created"
    REFERRAL_ACCEPTED = "referral_accepted", "Referral accepted"
    REFERRAL_DECLINED = "referral_declined", "Referral declined"
    REFERRAL_COMPLETED = "referral_completed", "Referral completed"

    PRESCRIPTION_CREATED = "prescription_created", "Prescription created"
    PRESCRIPTION_ASSIGNED = "prescription_assigned", "Prescription assigned"
    PRESCRIPTION_CLAIMED = "prescription_claimed", "Prescription claimed"
    PRESCRIPTION_PREPARING = "prescription_preparing", "Prescription preparing"
    PRESCRIPTION_READY = "prescription_ready", "Prescription ready"
    PRESCRIPTION_DELIVERED = "prescription_delivered", "Prescription delivered"
    PRESCRIPTION_CANCELLED = "prescription_cancelled", "Prescription cancelled"

    DIAGNOSTIC_ORDER_REQUEST = "diagnostic_order_request", "Diagnostic order request"
    DIAGNOSTIC_ORDER_CREATED = "diagnostic_order_created", "Diagnostic order created"
    DIAGNOSTIC_ORDER_SCHEDULED = "diagnostic_order_scheduled", "Diagnostic order scheduled"
    DIAGNOSTIC_ORDER_UPDATED = "diagnostic_order_updated", "Diagnostic order updated"
    DIAGNOSTIC_ORDER_COMPLETED = "diagnostic_order_completed", "Diagnostic order completed"

    APPLICATION_APPROVED = "application_approved", "Application approved"
    APPLICATION_REJECTED = "application_rejected", "Application rejected"


class EntityType(models.TextChoices):
    CONSULTATION = "consultation", "Consultation"
    REFERRAL = "referral", "Referral"
    PRESCRIPTION = "prescription", "Prescription"
    DIAGNOSTIC_ORDER = "diagnostic_order", "Diagnostic order"
    APPLICATION = "application", "Application"


class Notification(UUIDModel):
    """
    In-app delivery record per user. Rows are append-only; only the read flag changes,
    and only at the owner's request.
    Entity links stay loose (entity_type + entity_id) to avoid cross-app FK coupling.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )

    type = models.CharField(max_length=48, choices=NotificationType.choices, db_index=True)
    entity_type = models.CharField(max_length=32, choices=EntityType.choices, db_index=True)
    entity_id = models.UUIDField(null=True, blank=True, db_index=True)

    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")
    link = models.CharField(max_length=512, blank=True, default="")

    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)

    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "is_read", "created_at"]),
            models.Index(fields=["entity_type", "entity_id"]),
        ]

    def __str__(self) -> str:
        return f"{self.type} -> {self.user_id}"

    def mark_read(self) -> None:
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
