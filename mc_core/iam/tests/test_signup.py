import pytest
from rest_framework.test import APIClient

from mc_core.common.errors import ConflictError, NotFoundError, ValidationError
from mc_core.iam.models import User, UserRole
from mc_core.iam.services.signup import SignupService

pytestmark = pytest.mark.django_db


def test_signup_hashes_password_and_lowercases_email():
    user = SignupService.signup(email="Jane@Example.COM", password="Secret123", name="Jane Doe", role="patient")

    assert user.email == "jane@example.com"
    assert user.role == UserRole.PATIENT
    assert user.password != "Secret123"
    assert user.check_password("Secret123")


def test_signup_duplicate_email_is_case_insensitive():
    SignupService.signup(email="dup@example.com", password="Secret123", name="First", role="patient")

    with pytest.raises(ConflictError):
        SignupService.signup(email="DUP@example.com", password="Secret123", name="Second", role="patient")

    assert User.objects.filter(email__iexact="dup@example.com").count() == 1


def test_signup_never_grants_admin():
    with pytest.raises(ValidationError) as exc:
        SignupService.signup(email="x@example.com", password="Secret123", name="Mallory", role="admin")
    assert exc.value.details == {"field": "role"}


@pytest.mark.parametrize("role", [UserRole.GP, UserRole.SPECIALIST, UserRole.PHARMACY, UserRole.DIAGNOSTIC_CENTER])
def test_signup_rejects_provider_and_partner_roles(role):
    with pytest.raises(ValidationError) as exc:
        SignupService.signup(email="doc@example.com", password="Secret123", name="Dr Someone", role=role)

    assert exc.value.details == {"field": "role"}
    assert not User.objects.filter(email="doc@example.com").exists()


@pytest.mark.parametrize(
    "kwargs,field",
    [
        ({"name": "J"}, "name"),
        ({"email": "not-an-email"}, "email"),
        ({"password": "short"}, "password"),
    ],
)
def test_signup_validation(kwargs, field):
    payload = {"email": "ok@example.com", "password": "Secret123", "name": "Okay Name", "role": "patient"}
    payload.update(kwargs)

    with pytest.raises(ValidationError) as exc:
        SignupService.signup(**payload)
    assert exc.value.details["field"] == field


def test_change_role(make_user):
    user = make_user(role=UserRole.PATIENT)
    updated = SignupService.change_role(user_id=user.id, role=UserRole.PHARMACY)
    assert updated.role == UserRole.PHARMACY


def test_change_role_unknown_user():
    import uuid

    with pytest.raises(NotFoundError):
        SignupService.change_role(user_id=uuid.uuid4(), role=UserRole.GP)


def test_signup_endpoint_returns_public_fields():
    c = APIClient()
    res = c.post(
        "/api/v1/auth/signup/",
        {"email": "new@example.com", "password": "Secret123", "name": "New Person", "role": "patient"},
        format="json",
    )
    assert res.status_code == 201
    body = res.json()
    assert body["email"] == "new@example.com"
    assert body["role"] == "patient"
    assert "password" not in body


def test_signup_endpoint_conflict_uses_error_envelope(make_user):
    make_user(email="taken@example.com")
    c = APIClient()
    res = c.post(
        "/api/v1/auth/signup/",
        {"email": "taken@example.com", "password": "Secret123", "name": "Someone", "role": "patient"},
        format="json",
    )
    assert res.status_code == 400
    err = res.json()["error"]
    assert err["code"] == "conflict"
    assert err["request_id"]


def test_signup_endpoint_defaults_to_patient():
    c = APIClient()
    res = c.post(
        "/api/v1/auth/signup/",
        {"email": "plain@example.com", "password": "Secret123", "name": "Plain Person"},
        format="json",
    )
    assert res.status_code == 201
    assert res.json()["role"] == "patient"


def test_signup_endpoint_rejects_provider_role():
    c = APIClient()
    res = c.post(
        "/api/v1/auth/signup/",
        {"email": "gp@example.com", "password": "Secret123", "name": "Would Be GP", "role": "gp"},
        format="json",
    )
    assert res.status_code == 400
    err = res.json()["error"]
    assert err["code"] == "validation_error"
    assert err["details"] == {"field": "role"}
    assert not User.objects.filter(email="gp@example.com").exists()
