"""
Access request review endpoints (admin only).
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import AccessRequest
from ..permissions import IsAdminRole
from ..serializers.access import AccessDecisionSerializer
from ..services.access import approve_request, pending_requests, reject_request, serialize_request


def _get_request(pk):
    return AccessRequest.objects.select_related('user').filter(id=pk).first()


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def list_requests(request):
    """Pending requests, newest first."""
    items = [serialize_request(r) for r in pending_requests()]
    return Response({'ok': True, 'items': items, 'total': len(items)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def approve(request):
    """Approve a request; ``role`` may override the role that was asked for."""
    s = AccessDecisionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    req = _get_request(s.validated_data['id'])
    if req is None:
        return Response({'ok': False, 'detail': 'request not found'}, status=404)
    try:
        req = approve_request(request.user, req, s.validated_data.get('role'))
    except ValueError as e:
        return Response({'ok': False, 'detail': str(e)}, status=400)
    return Response({'ok': True, 'request': serialize_request(req)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def reject(request):
    s = AccessDecisionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    req = _get_request(s.validated_data['id'])
    if req is None:
        return Response({'ok': False, 'detail': 'request not found'}, status=404)
    try:
        reject_request(request.user, req)
    except ValueError as e:
        return Response({'ok': False, 'detail': str(e)}, status=400)
    return Response({'ok': True, 'deleted': s.validated_data['id']})
