"""
Authentication views and helper functions.

This module defines signup, login, token refresh/logout, the current
profile endpoint and the password reset flow used by the front-end.
Isolating these views from the authentication class (see
``care.authentication``) prevents circular imports when Django REST
framework initialises authentication classes.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.mail import send_mail
from django.db import transaction
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from care.authentication import token_expired
from care.serializers.auth import (
    ForgotPasswordSerializer,
    LoginSerializer,
    ResetPasswordSerializer,
    SignupSerializer,
)
from care.services.audit import log_action
from care.services.people import serialize_user
from care.services.routing import dashboard_for, nav_links_for
from care.services.stats import invalidate_role_counts

from .models import User

logger = logging.getLogger(__name__)


def _issue_tokens(user: User) -> dict:
    token_obj, _ = Token.objects.get_or_create(user=user)
    if token_expired(token_obj):
        token_obj.delete()
        token_obj = Token.objects.create(user=user)
    refresh = RefreshToken.for_user(user)
    return {
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
    }


# ---------------------------------------------------------------------
# Signup (always a patient)
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def signup_view(request):
    """Create a patient account.

    The role is never taken from the request; other roles are granted
    by an administrator or through an access request.
    """
    s = SignupSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data

    candidate = User(username=v['email'], email=v['email'], name=v['name'])
    try:
        validate_password(v['password'], user=candidate)
    except DjangoValidationError as e:
        return Response({'ok': False, 'detail': {'password': e.messages}}, status=400)

    with transaction.atomic():
        user = User.objects.create_user(
            username=v['email'],
            email=v['email'],
            password=v['password'],
            name=v['name'],
            age=v.get('age'),
            village=v.get('village') or '',
            phone=v.get('phone') or '',
            role=User.ROLE_PATIENT,
        )
    invalidate_role_counts()
    log_action(user=user, action='signup', object_type='user', object_id=user.id,
               detail={'ip': request.META.get('REMOTE_ADDR')})
    return Response({'ok': True, 'user': serialize_user(user), 'next': '/login'}, status=201)

# ScopedRateThrottle reads the scope from the wrapped APIView class
signup_view.cls.throttle_scope = 'signup'


# ---------------------------------------------------------------------
# Email (or username)/password login (no role bypass)
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def login_view(request):
    """
    Secure login with email/password only (no role bypass).
    Accepts fields:
      - email or username
      - password
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    login = s.validated_data['login']

    user = authenticate(request, username=login, password=s.validated_data['password'])
    if not user:
        log_action(user=None, action='login', object_type='user',
                   detail={'result': 'fail', 'login': login, 'ip': request.META.get('REMOTE_ADDR')})
        return Response({'ok': False, 'detail': 'Invalid email or password'}, status=400)

    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})

    payload: dict[str, object] = {
        'ok': True,
        **_issue_tokens(user),
        'role': user.role,
        'dashboard': dashboard_for(user.role),
        'user': serialize_user(user),
    }
    return Response(payload, status=200)

login_view.cls.throttle_scope = 'login'


# ---------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    """Return the profile and where the client should route this user."""
    user: User = request.user
    return Response({
        'ok': True,
        'user': serialize_user(user),
        'role': user.role,
        'dashboard': dashboard_for(user.role),
        'links': nav_links_for(user.role),
    })


# ---------------------------------------------------------------------
# JWT: refresh & logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from refresh token."""
    view = TokenRefreshView.as_view()
    resp = view(request._request)
    if isinstance(resp, Response):
        data = dict(resp.data)
        if 'access' in data and 'jwt_access' not in data:
            data['jwt_access'] = data.pop('access')
        return Response(data, status=resp.status_code)
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """Blacklist the user's refresh tokens (all or a given one) and drop the legacy token."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError as e:
            return Response({'ok': False, 'detail': str(e)}, status=400)
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    Token.objects.filter(user=request.user).delete()
    return Response({'ok': True, 'blacklisted': count})


# ---------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def forgot_password_view(request):
    """Mail a reset link if the address is known; the answer never says which."""
    s = ForgotPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = User.objects.filter(email__iexact=s.validated_data['email'], is_active=True).first()
    if user:
        uid = urlsafe_base64_encode(force_bytes(user.pk))
        token = default_token_generator.make_token(user)
        link = f"{settings.PASSWORD_RESET_URL}?uid={uid}&token={token}"
        send_mail(
            'Reset your Caresora password',
            f"Hello {user.display_name()},\n\nUse this link to choose a new password:\n{link}\n",
            settings.DEFAULT_FROM_EMAIL,
            [user.email],
        )
        log_action(user=user, action='password_reset_request', object_type='user', object_id=user.id)
    return Response({'ok': True, 'detail': 'If the email is registered, a reset link has been sent.'})

forgot_password_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password_view(request):
    s = ResetPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    try:
        uid = force_str(urlsafe_base64_decode(v['uid']))
        user = User.objects.get(pk=uid)
    except (TypeError, ValueError, OverflowError, User.DoesNotExist):
        user = None
    if user is None or not default_token_generator.check_token(user, v['token']):
        return Response({'ok': False, 'detail': 'Reset link is invalid or has expired'}, status=400)
    try:
        validate_password(v['password'], user=user)
    except DjangoValidationError as e:
        return Response({'ok': False, 'detail': {'password': e.messages}}, status=400)
    user.set_password(v['password'])
    user.save(update_fields=['password'])
    Token.objects.filter(user=user).delete()
    log_action(user=user, action='password_reset', object_type='user', object_id=user.id)
    return Response({'ok': True, 'next': '/login'})
