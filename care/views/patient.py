"""
Patient area endpoints.

A patient sees their own review status and vitals history, finds the
field workers serving their village and can apply for a worker or
doctor role.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsPatientRole
from ..serializers.access import AccessRequestCreateSerializer
from ..services.access import create_request, serialize_request
from ..services.people import serialize_with_review, village_workers
from ..services.records import records_for_patient, serialize_record


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def patient_dashboard(request):
    """Profile with review flags, latest condition and history (newest first)."""
    history = [serialize_record(r) for r in records_for_patient(request.user.id)]
    return Response({
        'ok': True,
        'profile': serialize_with_review(request.user),
        'latestCondition': history[0]['condition'] if history else None,
        'history': history,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def contact_workers(request):
    workers = [
        {'id': w.id, 'name': w.display_name(), 'phone': w.phone, 'village': w.village}
        for w in village_workers(request.user)
    ]
    return Response({'ok': True, 'village': request.user.village, 'items': workers})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPatientRole])
def request_access(request):
    s = AccessRequestCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        req = create_request(
            request.user,
            requested_role=s.validated_data['requestedRole'],
            reason=s.validated_data['reason'],
        )
    except ValueError as e:
        return Response({'ok': False, 'detail': str(e)}, status=400)
    return Response({'ok': True, 'request': serialize_request(req)}, status=201)
