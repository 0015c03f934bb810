"""
PATH: users/auth_backends.py

AUTH BACKEND: case-insensitive email login

Used by Django authenticate() and by SimpleJWT's token view, which passes the
identifier under USERNAME_FIELD ("email").
Permission checks are inherited from ModelBackend (Django admin relies on them).
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

User = get_user_model()


class EmailBackend(ModelBackend):
    def authenticate(self, request, username=None, password=None, **kwargs):
        identifier = (username or kwargs.get(User.USERNAME_FIELD) or "").strip()
        if not identifier or password is None:
            return None

        try:
            user = User.objects.get(email__iexact=identifier)
        except User.DoesNotExist:
            User().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user

        return None
