from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def _app_url() -> str:
    return getattr(settings, "MC_APP_URL", "http://localhost:3000").rstrip("/")


def send_approval_email(*, email: str, name: str, application_type: str) -> None:
    """
    Runs after commit. A transport failure is logged and does not undo the approval.
    """
    subject = "Your MediConnect application has been approved"
    body = (
        f"Hello {name},\n\n"
        f"Your {application_type} application has been approved. "
        f"You can now sign in at {_app_url()}/login.\n\n"
        "The MediConnect team"
    )
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [email], fail_silently=False)
    except Exception:
        logger.exception("approval email failed", extra={"application_type": application_type})


def send_rejection_email(*, email: str, name: str, application_type: str, reason: str) -> None:
    subject = "Your MediConnect application"
    body = (
        f"Hello {name},\n\n"
        f"Unfortunately your {application_type} application was not approved.\n"
        f"Reason: {reason}\n\n"
        "The MediConnect team"
    )
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [email], fail_silently=False)
    except Exception:
        logger.exception("rejection email failed", extra={"application_type": application_type})
