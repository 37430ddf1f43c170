# dm_core/iam/session.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from django.db import models


class Role(models.TextChoices):
    """
    Dispensary roles, stored as Django auth Group names.

    STAFF creates and advances orders; ADMIN additionally manages patient
    records and reads the audit trail.
    """
    STAFF = "STAFF", "Staff"
    ADMIN = "ADMIN", "Admin"


@dataclass(frozen=True)
class SessionContext:
    """
    Who is acting, passed explicitly to services and permission checks.
    """
    user_id: Optional[int]
    username: str
    role: Optional[str]

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_staff_member(self) -> bool:
        return self.role in {Role.STAFF, Role.ADMIN}


SYSTEM_SESSION = SessionContext(user_id=None, username="system", role=Role.ADMIN.value)


def resolve_role(user) -> Optional[str]:
    """
    Resolve the effective role for a user.

    - superusers are ADMIN
    - ADMIN group wins over STAFF group
    - no group => None (authenticated but not allowed to use the API)
    """
    if not user or not getattr(user, "is_authenticated", False):
        return None

    if getattr(user, "is_superuser", False):
        return Role.ADMIN.value

    names = set(user.groups.values_list("name", flat=True)) if hasattr(user, "groups") else set()
    if Role.ADMIN in names:
        return Role.ADMIN.value
    if Role.STAFF in names:
        return Role.STAFF.value
    return None


def session_from_user(user) -> SessionContext:
    return SessionContext(
        user_id=getattr(user, "id", None),
        username=getattr(user, "username", "") or "",
        role=resolve_role(user),
    )


def session_from_request(request) -> SessionContext:
    """
    Build (and cache on the request) the SessionContext for the current user.
    """
    cached = getattr(request, "_dm_session", None)
    if cached is not None:
        return cached
    ctx = session_from_user(getattr(request, "user", None))
    setattr(request, "_dm_session", ctx)
    return ctx
