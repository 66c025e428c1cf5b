"""
Test settings for Orthodash.
"""

from .base import *  # noqa: F401, F403

SECRET_KEY = "orthodash-test-key"
DEBUG = False
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# Run tasks inline, no broker
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"

GREYFINCH_API_URL = "https://greyfinch.test/v1/graphql"

ANALYTICS = {
    "COST_PER_LEAD": "150",
    "APPOINTMENT_VALUE": "250",
    "DASHBOARD_LOCATIONS": {
        "gilbert": "Gilbert",
        "phoenix": "Phoenix-Ahwatukee",
    },
    "DEFAULT_WINDOW_DAYS": 30,
}
