# dm_core/iam/openapi.py
from django.conf import settings
from drf_spectacular.extensions import OpenApiAuthenticationExtension


class DispensaryJWTScheme(OpenApiAuthenticationExtension):
    """
    Security scheme for CookieOrHeaderJWTAuthentication. Swagger "Authorize"
    sends the Bearer header; browsers rely on the access cookie set by login.
    """
    target_class = "dm_core.iam.auth.CookieOrHeaderJWTAuthentication"
    name = "BearerOrCookieJWT"

    def get_security_definition(self, auto_schema):
        cookie = settings.SIMPLE_JWT.get("AUTH_COOKIE", "dm_access")
        return {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": (
                "Access token from POST /api/v1/auth/login/, sent as "
                f"`Authorization: Bearer <token>` or in the HttpOnly `{cookie}` cookie."
            ),
        }
