import pytest
from django.core.cache import cache
from django.core.management import call_command

from care.models import AccessRequest, MedicalRecord, User
from care.services.stats import ROLE_COUNTS_KEY

pytestmark = pytest.mark.django_db


def test_ensure_demo_users_is_idempotent():
    call_command('ensure_demo_users', '--password', 'Demo!pass1')
    User.objects.filter(email='doctor@caresora.test').update(role='patient', is_active=False)
    call_command('ensure_demo_users', '--password', 'Demo!pass1')

    assert User.objects.count() == 4
    doctor = User.objects.get(email='doctor@caresora.test')
    assert doctor.role == 'doctor'
    assert doctor.is_active
    assert doctor.check_password('Demo!pass1')


def test_populate_data_creates_linked_sample_data():
    call_command('populate_data', '--patients', '4', '--seed', '7')
    assert User.objects.filter(role='worker').count() == 4
    assert User.objects.filter(role='patient').count() == 4
    assert AccessRequest.objects.filter(status='pending').count() == 1
    for record in MedicalRecord.objects.select_related('patient', 'worker'):
        assert record.patient.worker_checked
        assert record.worker.role == 'worker'


def test_refresh_caches_warms_role_counts():
    User.objects.create_user(username='x@example.org', email='x@example.org', password='x', role='worker')
    call_command('refresh_caches')
    assert cache.get(ROLE_COUNTS_KEY) == {'patient': 0, 'doctor': 0, 'worker': 1, 'admin': 0}
