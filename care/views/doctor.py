"""
Doctor area endpoints.

Doctors see every patient and field worker, read their records and
leave a review message for the patient.  Reviewing sets the patient's
``doctor_checked`` flag, which removes them from the pending count on
the doctor dashboard.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import User
from ..permissions import IsDoctorRole
from ..serializers.access import DoctorReviewSerializer
from ..services.audit import log_action
from ..services.people import doctor_stats, serialize_user, serialize_with_review
from ..services.records import get_patient, records_by_worker, records_for_patient, serialize_record


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def doctor_dashboard(request):
    return Response({'ok': True, **doctor_stats()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def doctor_users(request):
    """GET /api/doctor/users?role=patient|worker"""
    role = request.query_params.get('role') or User.ROLE_PATIENT
    if role not in (User.ROLE_PATIENT, User.ROLE_WORKER):
        return Response({'ok': False, 'detail': 'role must be patient or worker'}, status=400)
    items = [serialize_with_review(u) for u in User.objects.filter(role=role).order_by('name', 'id')]
    return Response({'ok': True, 'role': role, 'items': items, 'total': len(items)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def patient_records(request, pk: int):
    try:
        patient = get_patient(pk)
    except LookupError as e:
        return Response({'ok': False, 'detail': str(e)}, status=404)
    items = [serialize_record(r) for r in records_for_patient(patient.id)]
    return Response({'ok': True, 'patient': serialize_with_review(patient), 'items': items})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def worker_records(request, pk: int):
    worker = User.objects.filter(id=pk, role=User.ROLE_WORKER).first()
    if worker is None:
        return Response({'ok': False, 'detail': 'worker not found'}, status=404)
    items = [serialize_record(r) for r in records_by_worker(worker.id)]
    return Response({'ok': True, 'worker': serialize_user(worker), 'items': items})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def review_patient(request):
    s = DoctorReviewSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        patient = get_patient(s.validated_data['patientId'])
    except LookupError as e:
        return Response({'ok': False, 'detail': str(e)}, status=404)
    patient.doctor_checked = True
    patient.doctor_message = s.validated_data['message']
    patient.save(update_fields=['doctor_checked', 'doctor_message'])
    log_action(user=request.user, action='doctor_review', object_type='user', object_id=patient.id)
    return Response({'ok': True, 'patient': serialize_with_review(patient)})
