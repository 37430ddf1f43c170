# config/settings/prod.py
from .base import *  # noqa

DEBUG = False

if SECRET_KEY == "unsafe-dev-key":  # noqa: F405
    raise ValueError("DJANGO_SECRET_KEY must be set in production.")

CORS_ALLOW_ALL_ORIGINS = False
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("DM_CORS_ORIGINS", "https://app.yourdomain.com").split(",")  # noqa: F405
    if origin.strip()
]
CORS_ALLOW_CREDENTIALS = True

SIMPLE_JWT["AUTH_COOKIE_SECURE"] = True  # noqa: F405
SIMPLE_JWT["AUTH_COOKIE_SAMESITE"] = "Lax"  # noqa: F405
