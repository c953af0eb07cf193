# mc_core/common/permissions.py

from __future__ import annotations

from typing import Set

from rest_framework.permissions import BasePermission, SAFE_METHODS

from mc_core.common.errors import AuthorizationError
from mc_core.iam.models import UserRole

ROLE_ADMIN = UserRole.ADMIN
ROLE_PATIENT = UserRole.PATIENT
ROLE_GP = UserRole.GP
ROLE_SPECIALIST = UserRole.SPECIALIST
ROLE_PHARMACY = UserRole.PHARMACY
ROLE_DIAGNOSTIC_CENTER = UserRole.DIAGNOSTIC_CENTER

DOCTOR_ROLES = {ROLE_GP, ROLE_SPECIALIST}
ALL_ROLES = {ROLE_ADMIN, ROLE_PATIENT, ROLE_GP, ROLE_SPECIALIST, ROLE_PHARMACY, ROLE_DIAGNOSTIC_CENTER}


def user_roles(user) -> Set[str]:
    """
    Resolve roles from:
    1) user.role (the active role on iam.User)
    2) superuser flag -> ADMIN

    Users whose application is still pending have no role and get an empty set.
    """
    roles: Set[str] = set()

    if not user or not getattr(user, "is_authenticated", False):
        return roles

    if getattr(user, "is_superuser", False):
        roles.add(ROLE_ADMIN)

    role = getattr(user, "role", None)
    if role:
        roles.add(str(role))

    return roles


def is_admin(user) -> bool:
    return ROLE_ADMIN in user_roles(user)


def acting_user_id(request, claimed_id=None):
    """
    The user a write acts on behalf of. Bodies may name the actor (patient_id, provider_id, ...)
    but only an admin may act for someone else.
    """
    own_id = request.user.id
    if claimed_id is None or str(claimed_id) == str(own_id):
        return own_id
    if is_admin(request.user):
        return claimed_id
    raise AuthorizationError("You may only act on your own behalf.")


class BaseRolePermission(BasePermission):
    """
    Base permission class for role-based access control.

    Key behavior:
    - Requires authentication.
    - ADMIN bypass.
    - Uses allowed_roles_per_action for strict RBAC.
    - If action is unknown and request is SAFE, fall back to list/retrieve.
    - Object-level checks (is this actor a party to the entity?) live in services,
      which raise AuthorizationError.
    """
    message = "You do not have permission to perform this action."

    allowed_roles_per_action: dict[str, set[str]] = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
    }

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = "pk" in kwargs or "id" in kwargs

        method = request.method.upper()
        if method in ("GET", "HEAD", "OPTIONS"):
            return "retrieve" if is_detail else "list"
        if method == "POST":
            return "create"
        return None

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        roles = user_roles(user)

        if ROLE_ADMIN in roles:
            return True

        action = self._infer_action(request, view)
        allowed = self.allowed_roles_per_action.get(action)

        if allowed is None and request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            is_detail = "pk" in kwargs or "id" in kwargs
            allowed = self.allowed_roles_per_action.get("retrieve" if is_detail else "list")

        if allowed is not None:
            return bool(roles & allowed)

        # Unknown action => deny by default
        return False


class ConsultationPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_PATIENT, ROLE_GP, ROLE_SPECIALIST},
        "retrieve": {ROLE_PATIENT, ROLE_GP, ROLE_SPECIALIST},
        "create": {ROLE_PATIENT},
        "act": DOCTOR_ROLES,
        "start": DOCTOR_ROLES,
        "complete": DOCTOR_ROLES,
        "cancel": {ROLE_PATIENT},
    }


class ReferralPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_PATIENT, ROLE_GP, ROLE_SPECIALIST},
        "retrieve": {ROLE_PATIENT, ROLE_GP, ROLE_SPECIALIST},
        "create": {ROLE_GP},
        "act": {ROLE_SPECIALIST},
        "complete": {ROLE_SPECIALIST},
    }


class PrescriptionPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_PATIENT, ROLE_GP, ROLE_SPECIALIST, ROLE_PHARMACY},
        "retrieve": {ROLE_PATIENT, ROLE_GP, ROLE_SPECIALIST, ROLE_PHARMACY},
        "issue": DOCTOR_ROLES,
        "assign_pharmacy": {ROLE_PATIENT},
        "claim_qr": {ROLE_PHARMACY},
        "fulfill": {ROLE_PHARMACY},
    }


class DiagnosticOrderPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_PATIENT, ROLE_GP, ROLE_SPECIALIST, ROLE_DIAGNOSTIC_CENTER},
        "retrieve": {ROLE_PATIENT, ROLE_GP, ROLE_SPECIALIST, ROLE_DIAGNOSTIC_CENTER},
        "test_types": ALL_ROLES,
        "place": DOCTOR_ROLES,
        "update_status": {ROLE_DIAGNOSTIC_CENTER},
    }


class AdminOnlyPermission(BaseRolePermission):
    allowed_roles_per_action: dict[str, set[str]] = {}
