# mc_core/iam/services/signup.py
from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction

from mc_core.common.errors import ConflictError, NotFoundError, ValidationError
from mc_core.iam.models import APPLICATION_ROLES, SIGNUP_ROLES, User

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
MIN_PHONE_LENGTH = 10
MIN_PASSWORD_LENGTH = 8


def validate_identity(*, name: str, email: str, password: str, phone_number: str | None = None,
                      require_phone: bool = False) -> None:
    if not name or len(name.strip()) < MIN_NAME_LENGTH:
        raise ValidationError("Name must be at least 2 characters.", details={"field": "name"})

    try:
        validate_email(email or "")
    except DjangoValidationError:
        raise ValidationError("Please provide a valid email address.", details={"field": "email"})

    if require_phone and (not phone_number or len(phone_number.strip()) < MIN_PHONE_LENGTH):
        raise ValidationError("Please provide a valid phone number.", details={"field": "phone_number"})

    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("Password must be at least 8 characters.", details={"field": "password"})


def ensure_email_available(email: str) -> None:
    if User.objects.filter(email__iexact=email.strip()).exists():
        raise ConflictError("An account with this email already exists.")


def create_account(*, email: str, password: str, name: str, role: str = "", phone_number: str = "") -> User:
    """
    Inserts the user with a hashed password. Must run inside the caller's transaction.

    The unique constraint on lower(email) is the final duplicate guard; the savepoint keeps
    an IntegrityError from poisoning the outer transaction.
    """
    ensure_email_available(email)
    try:
        with transaction.atomic(savepoint=True):
            return User.objects.create_user(
                email=email,
                password=password,
                name=name.strip(),
                role=role,
                phone_number=(phone_number or "").strip(),
            )
    except IntegrityError:
        raise ConflictError("An account with this email already exists.")


class SignupService:
    """
    Role-based signup: validate -> duplicate email check -> hash password -> insert user.
    """

    @staticmethod
    @transaction.atomic
    def signup(*, email: str, password: str, name: str, role: str, phone_number: str = "") -> User:
        if role in APPLICATION_ROLES:
            raise ValidationError(
                "Providers and partners must apply through apply/provider or apply/partner.",
                details={"field": "role"},
            )
        if role not in SIGNUP_ROLES:
            raise ValidationError(
                f"Invalid role. Must be one of: {', '.join(SIGNUP_ROLES)}.",
                details={"field": "role"},
            )

        validate_identity(name=name, email=email, password=password)
        user = create_account(email=email, password=password, name=name, role=role, phone_number=phone_number)

        logger.info("user signed up", extra={"user_id": str(user.id), "role": role})
        return user

    @staticmethod
    @transaction.atomic
    def change_role(*, user_id, role: str) -> User:
        """
        Admin-only role change.
        """
        valid = {choice for choice, _ in User._meta.get_field("role").choices}
        if role not in valid:
            raise ValidationError(f"Invalid role: {role}.", details={"field": "role"})

        updated = User.objects.filter(id=user_id).update(role=role)
        if not updated:
            raise NotFoundError("User not found.")

        logger.info("user role changed", extra={"user_id": str(user_id), "role": role})
        return User.objects.get(id=user_id)
