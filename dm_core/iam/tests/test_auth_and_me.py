# dm_core/iam/tests/test_auth_and_me.py
import pytest
from django.contrib.auth.models import Group
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from dm_core.iam.session import Role, resolve_role, session_from_user

PASSWORD = "Pass@12345"

pytestmark = pytest.mark.django_db


def test_me_requires_auth():
    c = APIClient()
    res = c.get("/api/v1/me/")
    assert res.status_code in (401, 403)


def test_login_sets_cookies_and_reports_role(staff_user, settings):
    c = APIClient()
    res = c.post("/api/v1/auth/login/", {"username": "staff", "password": PASSWORD}, format="json")
    assert res.status_code == 200, res.data
    assert res.data["role"] == "STAFF"

    assert settings.SIMPLE_JWT["AUTH_COOKIE"] in res.cookies
    assert settings.SIMPLE_JWT["AUTH_COOKIE_REFRESH"] in res.cookies


def test_login_bad_password(staff_user):
    c = APIClient()
    res = c.post("/api/v1/auth/login/", {"username": "staff", "password": "wrong"}, format="json")
    assert res.status_code in (401, 403)
    assert "error" in res.data


def test_cookie_auth_reaches_protected_endpoint(staff_user):
    c = APIClient()
    c.post("/api/v1/auth/login/", {"username": "staff", "password": PASSWORD}, format="json")

    # APIClient keeps the cookies set by login
    res = c.get("/api/v1/me/")
    assert res.status_code == 200
    assert res.data["role"] == "STAFF"


def test_bearer_token_auth(admin_user):
    c = APIClient()
    access = str(RefreshToken.for_user(admin_user).access_token)
    c.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

    res = c.get("/api/v1/me/")
    assert res.status_code == 200
    assert res.data["user"]["id"] == admin_user.id
    assert res.data["is_admin"] is True


def test_bearer_header_wins_over_cookie(staff_user, admin_user):
    c = APIClient()
    c.post("/api/v1/auth/login/", {"username": "staff", "password": PASSWORD}, format="json")
    access = str(RefreshToken.for_user(admin_user).access_token)
    c.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

    res = c.get("/api/v1/me/")
    assert res.status_code == 200
    assert res.data["user"]["id"] == admin_user.id


def test_refresh_and_logout(staff_user, settings):
    c = APIClient()
    c.post("/api/v1/auth/login/", {"username": "staff", "password": PASSWORD}, format="json")

    res = c.post("/api/v1/auth/refresh/")
    assert res.status_code == 200
    assert settings.SIMPLE_JWT["AUTH_COOKIE"] in res.cookies

    res = c.post("/api/v1/auth/logout/")
    assert res.status_code == 200
    assert res.cookies[settings.SIMPLE_JWT["AUTH_COOKIE"]].value == ""


def test_me_without_role(no_role_user):
    c = APIClient()
    c.force_authenticate(user=no_role_user)
    res = c.get("/api/v1/me/")
    assert res.status_code == 200
    assert res.data["role"] is None


def test_resolve_role(staff_user, admin_user, no_role_user, django_user_model):
    assert resolve_role(staff_user) == "STAFF"
    assert resolve_role(admin_user) == "ADMIN"
    assert resolve_role(no_role_user) is None

    su = django_user_model.objects.create_superuser(username="root", password="x", email="r@example.com")
    assert resolve_role(su) == "ADMIN"

    # ADMIN wins when both groups are present
    staff_user.groups.add(Group.objects.get(name=Role.ADMIN.value))
    assert session_from_user(staff_user).is_admin


def test_audit_events_admin_only(staff_client, admin_client):
    assert staff_client.get("/api/v1/audit/events/").status_code == 403
    assert admin_client.get("/api/v1/audit/events/").status_code == 200


def test_ensure_roles_command():
    from django.core.management import call_command

    call_command("ensure_roles")
    assert set(Group.objects.values_list("name", flat=True)) >= {"STAFF", "ADMIN"}
