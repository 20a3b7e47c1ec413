import re
from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from care.models import AuditEvent, User

pytestmark = pytest.mark.django_db

PASSWORD = 'P@ssw0rd1!x'


def make_user(email, role='patient'):
    return User.objects.create_user(username=email, email=email, password=PASSWORD, role=role, name=email[:5])


def login(client, email, password=PASSWORD, **extra):
    return client.post(reverse('auth_login'), {'email': email, 'password': password, **extra}, format='json')


def test_no_role_bypass_in_login():
    client = APIClient()
    u = make_user('u1@example.org')
    # Try to bypass by sending role
    r = login(client, 'u1@example.org', role='admin')
    assert r.status_code == 200
    assert r.data['role'] == 'patient'
    assert r.data['dashboard'] == '/dashboard/patient'
    u.refresh_from_db()
    assert u.role == 'patient'


def test_login_accepts_username_field_and_mixed_case_email():
    make_user('case@example.org')
    client = APIClient()
    assert login(client, 'CASE@Example.org').status_code == 200
    r = client.post(reverse('auth_login'), {'username': 'case@example.org', 'password': PASSWORD}, format='json')
    assert r.status_code == 200


def test_login_returns_jwt_and_legacy_token():
    make_user('jwt@example.org')
    r = login(APIClient(), 'jwt@example.org')
    assert r.status_code == 200
    assert r.data['jwt_access'] and r.data['jwt_refresh'] and r.data['token']


def test_failed_login_is_audited():
    make_user('audit@example.org')
    r = login(APIClient(), 'audit@example.org', password='wrong')
    assert r.status_code == 400
    ev = AuditEvent.objects.filter(action='login').latest('created_at')
    assert ev.detail['result'] == 'fail'
    assert ev.user is None


def test_jwt_access_authenticates_and_refresh_renames_key():
    make_user('bearer@example.org', role='doctor')
    client = APIClient()
    tokens = login(client, 'bearer@example.org').data
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['jwt_access']}")
    assert client.get(reverse('doctor_dashboard')).status_code == 200

    r = APIClient().post(reverse('auth_refresh'), {'refresh': tokens['jwt_refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['jwt_access']
    assert 'access' not in r.data


def test_logout_blacklists_refresh_and_drops_legacy_token():
    u = make_user('out@example.org')
    client = APIClient()
    tokens = login(client, 'out@example.org').data
    client.credentials(HTTP_AUTHORIZATION=f"Token {tokens['token']}")
    r = client.post(reverse('auth_logout'), {}, format='json')
    assert r.status_code == 200
    assert r.data['blacklisted'] >= 1
    assert not Token.objects.filter(user=u).exists()

    r = APIClient().post(reverse('auth_refresh'), {'refresh': tokens['jwt_refresh']}, format='json')
    assert r.status_code == 401


def test_expired_legacy_token_is_rejected_and_rotated_on_login():
    u = make_user('old@example.org')
    old = Token.objects.create(user=u)
    Token.objects.filter(pk=old.pk).update(created=timezone.now() - timedelta(days=365))

    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Token {old.key}')
    r = client.get(reverse('auth_me'))
    assert r.status_code == 401
    assert r.data['ok'] is False

    r = login(APIClient(), 'old@example.org')
    assert r.status_code == 200
    assert r.data['token'] != old.key


@pytest.mark.parametrize('role, allowed', [
    ('admin', 'admin_requests'),
    ('doctor', 'doctor_users'),
    ('worker', 'worker_records'),
    ('patient', 'patient_contact'),
])
def test_role_areas_reject_other_roles(role, allowed):
    me = make_user(f'{role}@example.org', role=role)
    client = APIClient()
    client.force_authenticate(user=me)
    for name in ('admin_requests', 'doctor_users', 'worker_records', 'patient_contact'):
        r = client.get(reverse(name))
        assert r.status_code == (200 if name == allowed else 403), name


def test_forgot_and_reset_password(mailoutbox):
    make_user('reset@example.org')
    client = APIClient()
    r = client.post(reverse('auth_forgot_password'), {'email': 'reset@example.org'}, format='json')
    assert r.status_code == 200
    assert len(mailoutbox) == 1
    m = re.search(r'uid=([^&\s]+)&token=(\S+)', mailoutbox[0].body)
    assert m, mailoutbox[0].body

    r = client.post(reverse('auth_reset_password'),
                    {'uid': m.group(1), 'token': m.group(2), 'password': 'N3w!password'}, format='json')
    assert r.status_code == 200
    assert login(client, 'reset@example.org', password='N3w!password').status_code == 200

    # the token is single use: the password hash changed
    r = client.post(reverse('auth_reset_password'),
                    {'uid': m.group(1), 'token': m.group(2), 'password': 'An0ther!password'}, format='json')
    assert r.status_code == 400


def test_forgot_password_does_not_reveal_unknown_email(mailoutbox):
    r = APIClient().post(reverse('auth_forgot_password'), {'email': 'ghost@example.org'}, format='json')
    assert r.status_code == 200
    assert r.data['ok'] is True
    assert mailoutbox == []


def test_reset_password_rejects_weak_password(mailoutbox):
    make_user('weak@example.org')
    client = APIClient()
    client.post(reverse('auth_forgot_password'), {'email': 'weak@example.org'}, format='json')
    m = re.search(r'uid=([^&\s]+)&token=(\S+)', mailoutbox[0].body)
    r = client.post(reverse('auth_reset_password'),
                    {'uid': m.group(1), 'token': m.group(2), 'password': '12345678'}, format='json')
    assert r.status_code == 400


def test_login_is_throttled():
    client = APIClient()
    statuses = [login(client, 'nobody@example.org', password='x').status_code for _ in range(11)]
    assert statuses[:10] == [400] * 10
    assert statuses[10] == 429
