# config/settings/test.py
from .base import *  # noqa

DEBUG = False
SECRET_KEY = "test-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

COMMON_IDEMPOTENCY_USE_DB = True
DM_AUTO_SEED = False

LOGGING["loggers"]["dm_core"]["level"] = "WARNING"  # noqa: F405
# let pytest's caplog see dm_core records
LOGGING["loggers"]["dm_core"]["propagate"] = True  # noqa: F405
