# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS

Used by both runners:
    python manage.py test --settings=backend.settings.test
    pytest   (pytest-django reads DJANGO_SETTINGS_MODULE from pyproject.toml)

- In-memory SQLite (fast, isolated)
- Fast password hashing
- Throttling disabled so API tests never hit 429
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import REST_FRAMEWORK

DEBUG = False
SECRET_KEY = "test-only-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
    "DEFAULT_THROTTLE_RATES": {
        **REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"],
        "order_write": "10000/min",
        "pickup_lookup": "10000/min",
    },
}

NOTIFICATIONS_ENABLED = True
PICKUP_CODE_MAX_ATTEMPTS = 50
