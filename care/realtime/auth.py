"""
Token authentication for WebSocket connections.

Browsers carry the session cookie, which ``AuthMiddlewareStack``
already resolves.  Field devices and other API clients instead pass
their DRF token as ``?token=<key>`` because WebSocket handshakes cannot
set an ``Authorization`` header from most client libraries.
"""
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser
from rest_framework.authtoken.models import Token

from care.authentication import token_expired


@database_sync_to_async
def user_for_token(key: str):
    token = Token.objects.select_related('user').filter(key=key).first()
    if token is None or token_expired(token) or not token.user.is_active:
        return AnonymousUser()
    return token.user


class TokenAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        query = parse_qs((scope.get("query_string") or b"").decode())
        key = (query.get("token") or [None])[0]
        if key:
            scope = dict(scope, user=await user_for_token(key))
        return await super().__call__(scope, receive, send)
