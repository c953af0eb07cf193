# mc_core/iam/selectors.py
from __future__ import annotations

from typing import Iterable

from django.core.exceptions import ValidationError as DjangoValidationError

from mc_core.common.errors import NotFoundError
from mc_core.iam.models import User


def get_user(*, user_id, label: str = "User") -> User:
    try:
        return User.objects.get(id=user_id)
    except (User.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"{label} not found.")


def get_user_with_role(*, user_id, roles: Iterable[str], label: str) -> User:
    """
    Resolve a user that must currently hold one of `roles`; anything else is a 404
    from the caller's point of view (e.g. "Pharmacy not found.").
    """
    try:
        return User.objects.get(id=user_id, role__in=list(roles), is_active=True)
    except (User.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"{label} not found.")
