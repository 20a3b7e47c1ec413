"""
Vitals record services.

Field workers submit records either one at a time while online or as a
batch replayed from the device's offline queue.  Both paths go through
:func:`create_record`, which treats ``client_ref`` as an idempotency
key: a record that was already stored is reported as a duplicate
instead of being inserted again.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone

from care.models import MedicalRecord
from care.serializers.records import RecordSyncItemSerializer
from care.services.audit import log_action

User = get_user_model()
logger = logging.getLogger(__name__)

SYNC_CREATED = 'created'
SYNC_DUPLICATE = 'duplicate'
SYNC_REJECTED = 'rejected'


def serialize_record(r: MedicalRecord) -> dict:
    return {
        'id': r.id,
        'patientId': r.patient_id,
        'patientName': r.patient.display_name() if r.patient_id else None,
        'workerId': r.worker_id,
        'workerName': r.worker.display_name() if r.worker_id else None,
        'bp': r.bp,
        'sugar': r.sugar,
        'weight': r.weight,
        'symptoms': r.symptoms,
        'condition': r.condition,
        'clientRef': str(r.client_ref) if r.client_ref else None,
        'recordedAt': r.recorded_at.isoformat() if r.recorded_at else None,
        'createdAt': r.created_at.isoformat() if r.created_at else None,
    }


def get_patient(patient_id: int) -> User:
    patient = User.objects.filter(id=patient_id, role='patient').first()
    if patient is None:
        raise LookupError('patient not found')
    return patient


def records_for_patient(patient_id: int):
    return (MedicalRecord.objects.filter(patient_id=patient_id)
            .select_related('patient', 'worker')
            .order_by('-recorded_at', '-created_at', '-id'))


def records_by_worker(worker_id: int):
    return (MedicalRecord.objects.filter(worker_id=worker_id)
            .select_related('patient', 'worker')
            .order_by('-recorded_at', '-created_at', '-id'))


def create_record(worker: User, patient: User, *, bp: str = '', sugar: Optional[float] = None,
                  weight: Optional[float] = None, symptoms: str = '', condition: str = MedicalRecord.CONDITION_STABLE,
                  client_ref=None, recorded_at=None) -> tuple[MedicalRecord, bool]:
    """Store one record and flag the patient as checked by a worker.

    Returns ``(record, created)``.  ``created`` is False when a record
    with the same ``client_ref`` already exists for this worker.  A
    ``client_ref`` owned by another worker raises ``PermissionError``.
    """
    if getattr(worker, 'role', '') != 'worker':
        raise PermissionError('only field workers can submit records')

    if client_ref:
        existing = MedicalRecord.objects.filter(client_ref=client_ref).first()
        if existing is not None:
            return _existing_or_raise(existing, worker), False

    try:
        with transaction.atomic():
            record = MedicalRecord.objects.create(
                patient=patient,
                worker=worker,
                bp=bp or '',
                sugar=sugar,
                weight=weight,
                symptoms=symptoms or '',
                condition=condition or MedicalRecord.CONDITION_STABLE,
                client_ref=client_ref,
                recorded_at=recorded_at or timezone.now(),
            )
            User.objects.filter(id=patient.id).update(worker_checked=True)
    except IntegrityError:
        # Another replay of the same clientRef won the insert
        existing = MedicalRecord.objects.filter(client_ref=client_ref).first()
        if existing is None:
            raise
        return _existing_or_raise(existing, worker), False

    log_action(user=worker, action='record_create', object_type='medical_record', object_id=record.id,
               detail={'patientId': patient.id, 'condition': record.condition})
    return record, True


def _existing_or_raise(existing: MedicalRecord, worker: User) -> MedicalRecord:
    if existing.worker_id != worker.id:
        raise PermissionError('clientRef belongs to another worker')
    return existing


def sync_records(worker: User, items: list) -> dict:
    """Replay a batch of offline records, each item independently.

    One bad item never blocks the rest of the batch: it is reported as
    rejected with its validation errors and the loop moves on.
    """
    results = []
    counts = {SYNC_CREATED: 0, SYNC_DUPLICATE: 0, SYNC_REJECTED: 0}
    for raw in items:
        ref = raw.get('clientRef')
        s = RecordSyncItemSerializer(data=raw)
        if not s.is_valid():
            results.append({'clientRef': ref, 'status': SYNC_REJECTED, 'errors': s.errors})
            counts[SYNC_REJECTED] += 1
            continue
        v = s.validated_data
        try:
            patient = get_patient(v['patientId'])
            record, created = create_record(
                worker, patient,
                bp=v.get('bp', ''), sugar=v.get('sugar'), weight=v.get('weight'),
                symptoms=v.get('symptoms', ''), condition=v.get('condition'),
                client_ref=v.get('clientRef'), recorded_at=v.get('recordedAt'),
            )
        except LookupError as e:
            results.append({'clientRef': ref, 'status': SYNC_REJECTED, 'errors': {'patientId': [str(e)]}})
            counts[SYNC_REJECTED] += 1
            continue
        except PermissionError as e:
            results.append({'clientRef': ref, 'status': SYNC_REJECTED, 'errors': {'clientRef': [str(e)]}})
            counts[SYNC_REJECTED] += 1
            continue
        status = SYNC_CREATED if created else SYNC_DUPLICATE
        results.append({'clientRef': ref, 'status': status, 'id': record.id})
        counts[status] += 1

    logger.info("sync from worker=%s: %s", worker.id, counts)
    log_action(user=worker, action='record_sync', object_type='medical_record', detail=counts)
    return {'results': results, 'counts': counts}
