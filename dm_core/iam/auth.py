# dm_core/iam/auth.py

from __future__ import annotations

from django.conf import settings
from rest_framework_simplejwt.authentication import JWTAuthentication


class CookieOrHeaderJWTAuthentication(JWTAuthentication):
    """
    Access tokens issued by POST /api/v1/auth/login/.

    API clients send `Authorization: Bearer <access>`. The browser app relies on
    the HttpOnly cookie set at login (SIMPLE_JWT["AUTH_COOKIE"], "dm_access" by
    default), which logout clears. When a header is present it wins and the
    cookie is ignored, so a stale cookie never masks an explicit token.

    The returned user carries no role by itself; permissions resolve STAFF or
    ADMIN from the user's groups (see iam/session.py).
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header:
            return super().authenticate(request)

        cookie_name = settings.SIMPLE_JWT.get("AUTH_COOKIE", "dm_access")
        raw_token = request.COOKIES.get(cookie_name)
        if not raw_token:
            return None

        validated_token = self.get_validated_token(raw_token)
        return self.get_user(validated_token), validated_token
