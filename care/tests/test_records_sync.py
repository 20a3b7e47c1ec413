import uuid
from datetime import timedelta

import pytest
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from care.models import MedicalRecord, User

pytestmark = pytest.mark.django_db


@pytest.fixture
def worker():
    return User.objects.create_user(username='w@example.org', email='w@example.org', password='x', role='worker',
                                    name='Ravi')


@pytest.fixture
def patient():
    return User.objects.create_user(username='p@example.org', email='p@example.org', password='x', role='patient',
                                    name='Meena')


@pytest.fixture
def worker_client(worker):
    c = APIClient()
    c.force_authenticate(user=worker)
    return c


def item(patient, **extra):
    data = {'patientId': patient.id, 'bp': '120/80', 'sugar': 95, 'weight': 61.5, 'clientRef': str(uuid.uuid4())}
    data.update(extra)
    return data


def test_sync_creates_and_replay_is_idempotent(worker_client, patient):
    batch = [item(patient), item(patient, recordedAt='2024-03-01T09:30:00+05:30', condition='attention')]
    r = worker_client.post(reverse('record_sync'), {'records': batch}, format='json')
    assert r.status_code == 200
    assert r.data['counts'] == {'created': 2, 'duplicate': 0, 'rejected': 0}
    first_ids = [res['id'] for res in r.data['results']]

    r = worker_client.post(reverse('record_sync'), {'records': batch}, format='json')
    assert r.data['counts'] == {'created': 0, 'duplicate': 2, 'rejected': 0}
    assert [res['id'] for res in r.data['results']] == first_ids
    assert [res['status'] for res in r.data['results']] == ['duplicate', 'duplicate']
    assert MedicalRecord.objects.count() == 2

    patient.refresh_from_db()
    assert patient.worker_checked is True
    rec = MedicalRecord.objects.get(client_ref=batch[1]['clientRef'])
    assert rec.recorded_at.isoformat().startswith('2024-03-01T04:00:00')


def test_bad_items_are_rejected_without_blocking_the_batch(worker_client, patient, worker):
    batch = [
        item(patient, bp='high'),
        item(patient),
        item(patient, patientId=worker.id),
        'not an object',
        item(patient, sugar=-5),
    ]
    r = worker_client.post(reverse('record_sync'), {'records': batch}, format='json')
    # DictField rejects the string before any item is processed
    assert r.status_code == 400

    batch.pop(3)
    r = worker_client.post(reverse('record_sync'), {'records': batch}, format='json')
    assert r.status_code == 200
    statuses = [res['status'] for res in r.data['results']]
    assert statuses == ['rejected', 'created', 'rejected', 'rejected']
    assert 'bp' in r.data['results'][0]['errors']
    assert 'patientId' in r.data['results'][2]['errors']
    assert 'sugar' in r.data['results'][3]['errors']
    assert r.data['counts'] == {'created': 1, 'duplicate': 0, 'rejected': 3}


def test_client_ref_owned_by_another_worker_is_rejected(worker_client, patient):
    other = User.objects.create_user(username='o@example.org', email='o@example.org', password='x', role='worker')
    ref = uuid.uuid4()
    MedicalRecord.objects.create(patient=patient, worker=other, bp='110/70', client_ref=ref)

    r = worker_client.post(reverse('record_sync'), {'records': [item(patient, clientRef=str(ref))]}, format='json')
    assert r.data['results'][0]['status'] == 'rejected'
    assert 'clientRef' in r.data['results'][0]['errors']

    r = worker_client.post(reverse('record_create'), item(patient, clientRef=str(ref)), format='json')
    assert r.status_code == 403
    assert MedicalRecord.objects.count() == 1


def test_single_record_with_client_ref_is_idempotent(worker_client, patient):
    body = item(patient)
    r = worker_client.post(reverse('record_create'), body, format='json')
    assert r.status_code == 201
    assert r.data['created'] is True
    r2 = worker_client.post(reverse('record_create'), body, format='json')
    assert r2.status_code == 200
    assert r2.data['created'] is False
    assert r2.data['record']['id'] == r.data['record']['id']


def test_records_without_client_ref_are_not_deduplicated(worker_client, patient):
    body = item(patient)
    body.pop('clientRef')
    worker_client.post(reverse('record_create'), body, format='json')
    worker_client.post(reverse('record_create'), body, format='json')
    assert MedicalRecord.objects.filter(client_ref=None).count() == 2


def test_sync_items_without_client_ref_are_rejected(worker_client, patient):
    unref = item(patient)
    unref.pop('clientRef')
    batch = [unref, item(patient, clientRef=None)]
    for _ in range(2):
        r = worker_client.post(reverse('record_sync'), {'records': batch}, format='json')
        assert r.status_code == 200
        assert r.data['counts'] == {'created': 0, 'duplicate': 0, 'rejected': 2}
        assert all('clientRef' in res['errors'] for res in r.data['results'])
    assert MedicalRecord.objects.count() == 0


def test_late_synced_visit_keeps_its_capture_time(worker_client, patient):
    now = timezone.now()
    r = worker_client.post(reverse('record_create'),
                           item(patient, condition='critical', recordedAt=(now - timedelta(days=1)).isoformat()),
                           format='json')
    assert r.status_code == 201
    r = worker_client.post(reverse('record_sync'),
                           {'records': [item(patient, condition='stable',
                                             recordedAt=(now - timedelta(days=3)).isoformat())]},
                           format='json')
    assert r.data['counts']['created'] == 1

    c = APIClient()
    c.force_authenticate(user=patient)
    r = c.get(reverse('patient_dashboard'))
    assert r.data['latestCondition'] == 'critical'
    assert [h['condition'] for h in r.data['history']] == ['critical', 'stable']

    r = worker_client.get(reverse('worker_records'))
    assert [h['condition'] for h in r.data['items']] == ['critical', 'stable']


def test_month_count_uses_capture_time(worker_client, patient):
    month_start = timezone.localtime().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    last_month = month_start - timedelta(days=2)
    worker_client.post(reverse('record_sync'),
                       {'records': [item(patient, recordedAt=last_month.isoformat())]}, format='json')
    r = worker_client.get(reverse('worker_dashboard'))
    assert r.data['docsUploaded'] == 1
    assert r.data['checkedThisMonth'] == 0


def test_symptoms_are_stored_as_plain_text(worker_client, patient):
    r = worker_client.post(reverse('record_create'),
                           item(patient, symptoms='<b>fever</b> & sugar < 70'), format='json')
    assert r.status_code == 201
    assert MedicalRecord.objects.get().symptoms == 'fever & sugar < 70'


@override_settings(SYNC_BATCH_MAX=2)
def test_batch_size_is_capped(worker_client, patient):
    r = worker_client.post(reverse('record_sync'), {'records': [item(patient) for _ in range(3)]}, format='json')
    assert r.status_code == 400
    r = worker_client.post(reverse('record_sync'), {'records': []}, format='json')
    assert r.status_code == 400
    assert MedicalRecord.objects.count() == 0


def test_only_workers_can_sync(patient):
    c = APIClient()
    c.force_authenticate(user=patient)
    r = c.post(reverse('record_sync'), {'records': [item(patient)]}, format='json')
    assert r.status_code == 403
