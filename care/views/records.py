"""
Vitals record submission.

``POST /api/records`` stores one record entered while online.
``POST /api/records/sync`` replays the batch a worker's device queued
while offline; items are keyed by ``clientRef`` so replaying the same
batch twice never duplicates a record.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from ..permissions import IsWorkerRole
from ..serializers.records import RecordInputSerializer, RecordSyncSerializer
from ..services.records import create_record, get_patient, serialize_record, sync_records


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsWorkerRole])
def create(request):
    s = RecordInputSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    try:
        patient = get_patient(v['patientId'])
    except LookupError as e:
        return Response({'ok': False, 'detail': str(e)}, status=404)
    try:
        record, created = create_record(
            request.user, patient,
            bp=v.get('bp', ''), sugar=v.get('sugar'), weight=v.get('weight'),
            symptoms=v.get('symptoms', ''), condition=v.get('condition'),
            client_ref=v.get('clientRef'), recorded_at=v.get('recordedAt'),
        )
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    return Response({'ok': True, 'created': created, 'record': serialize_record(record)},
                    status=201 if created else 200)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsWorkerRole])
@throttle_classes([ScopedRateThrottle])
def sync(request):
    s = RecordSyncSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = sync_records(request.user, s.validated_data['records'])
    return Response({'ok': True, **result})

sync.cls.throttle_scope = 'record_sync'
