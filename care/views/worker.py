"""
Field worker area endpoints: dashboard, patient lookup and history.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsWorkerRole
from ..serializers.records import PatientSearchQuerySerializer
from ..services.people import search_patients, serialize_user, worker_stats
from ..services.records import get_patient, records_by_worker, records_for_patient, serialize_record


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsWorkerRole])
def worker_dashboard(request):
    return Response({'ok': True, **worker_stats(request.user)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsWorkerRole])
def search(request):
    """Patients whose name starts with ``q``; used by the record entry form."""
    s = PatientSearchQuerySerializer(data=request.query_params)
    s.is_valid(raise_exception=True)
    items = [serialize_user(u) for u in search_patients(s.validated_data['q'])]
    return Response({'ok': True, 'items': items})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsWorkerRole])
def patient_history(request, pk: int):
    try:
        patient = get_patient(pk)
    except LookupError as e:
        return Response({'ok': False, 'detail': str(e)}, status=404)
    items = [serialize_record(r) for r in records_for_patient(patient.id)]
    return Response({'ok': True, 'patient': serialize_user(patient), 'items': items})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsWorkerRole])
def my_records(request):
    items = [serialize_record(r) for r in records_by_worker(request.user.id)]
    return Response({'ok': True, 'items': items, 'total': len(items)})
