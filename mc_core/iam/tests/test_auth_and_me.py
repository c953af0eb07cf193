# mc_core/iam/tests/test_auth_and_me.py
import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from mc_core.iam.models import UserRole

pytestmark = pytest.mark.django_db


def test_me_requires_auth():
    """
    Fresh APIClient: no force_authenticate, so the request is anonymous.
    """
    c = APIClient()
    res = c.get("/api/me/")
    assert res.status_code in (401, 403)
    assert "error" in res.json()


def test_login_sets_cookies(make_user, settings):
    user = make_user(email="login@example.com")

    c = APIClient()
    res = c.post("/api/auth/login/", {"email": "login@example.com", "password": "Pass@12345"}, format="json")
    assert res.status_code == 200

    assert settings.SIMPLE_JWT["AUTH_COOKIE"] in res.cookies
    assert settings.SIMPLE_JWT["AUTH_COOKIE_REFRESH"] in res.cookies
    assert user.email == "login@example.com"


def test_login_rejects_bad_password(make_user):
    make_user(email="login2@example.com")
    c = APIClient()
    res = c.post("/api/auth/login/", {"email": "login2@example.com", "password": "wrong"}, format="json")
    assert res.status_code == 401


def test_me_with_bearer_token(make_user):
    """
    Real JWT so CookieOrHeaderJWTAuthentication runs (force_authenticate would bypass it).
    """
    user = make_user(role=UserRole.GP)
    access = str(RefreshToken.for_user(user).access_token)

    c = APIClient()
    c.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    res = c.get("/api/v1/me/")
    assert res.status_code == 200
    assert res.json()["user"]["id"] == str(user.id)
    assert res.json()["user"]["role"] == "gp"


def test_me_with_access_cookie(make_user, settings):
    user = make_user()
    access = str(RefreshToken.for_user(user).access_token)

    c = APIClient()
    c.cookies[settings.SIMPLE_JWT["AUTH_COOKIE"]] = access
    res = c.get("/api/v1/me/")
    assert res.status_code == 200
    assert res.json()["user"]["email"] == user.email


def test_response_echoes_request_id(make_user, client_for):
    c = client_for(make_user())
    res = c.get("/api/v1/me/", HTTP_X_REQUEST_ID="abc-123")
    assert res["X-Request-Id"] == "abc-123"


def test_admin_role_change_endpoint(admin_user, make_user, client_for):
    target = make_user(role=UserRole.PATIENT)

    res = client_for(admin_user).post(f"/api/v1/admin/users/{target.id}/role/", {"role": "gp"}, format="json")
    assert res.status_code == 200
    target.refresh_from_db()
    assert target.role == UserRole.GP


def test_role_change_forbidden_for_non_admin(make_user, client_for):
    actor = make_user(role=UserRole.GP)
    target = make_user(role=UserRole.PATIENT)

    res = client_for(actor).post(f"/api/v1/admin/users/{target.id}/role/", {"role": "gp"}, format="json")
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "permission_denied"
