# config/settings/local.py
from .base import *  # noqa

DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"  # noqa: F405

# Local runs default to SQLite unless a DB_ENGINE is exported
if not os.getenv("DB_ENGINE"):  # noqa: F405
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "dm.sqlite3",  # noqa: F405
        }
    }

# In-memory idempotency keeps dev restarts clean
COMMON_IDEMPOTENCY_USE_DB = False
