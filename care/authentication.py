"""
Custom authentication backend for token-based auth.

Legacy ``Token`` keys (DRF authtoken) are accepted alongside JWTs so
field devices that stored a token before going offline keep working
after they reconnect.  Unlike DRF's stock class, keys expire after
``TOKEN_MAX_AGE_DAYS``.  Keeping this separate from any view avoids
circular imports when DRF loads authentication classes.
"""
from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from rest_framework import authentication, exceptions


def token_expired(token) -> bool:
    max_age = timedelta(days=settings.TOKEN_MAX_AGE_DAYS)
    return token.created < timezone.now() - max_age


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword, with expiry."""

    keyword = 'Token'

    def authenticate_credentials(self, key):
        user, token = super().authenticate_credentials(key)
        if token_expired(token):
            raise exceptions.AuthenticationFailed('Token expired, please log in again.')
        return user, token
