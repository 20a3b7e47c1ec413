"""
User management for administrators.

Lists users of one role together with the people they are linked to
through medical records, and lets an administrator change a user's
role.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import User
from ..permissions import IsAdminRole
from ..serializers.access import RoleUpdateSerializer
from ..services.access import change_role
from ..services.people import serialize_user, users_with_connections

ROLES = [r for r, _ in User.ROLE_CHOICES]


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def list_users(request):
    """GET /api/admin/users?role=patient&q=

    Patients carry their care team (workers who recorded their vitals);
    workers carry the patients they recorded.
    """
    role = request.query_params.get('role') or User.ROLE_PATIENT
    if role not in ROLES:
        return Response({'ok': False, 'detail': f'unknown role: {role}'}, status=400)
    q = (request.query_params.get('q') or '').strip()
    items = users_with_connections(role, q or None)
    return Response({'ok': True, 'role': role, 'items': items, 'total': len(items)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def set_user_role(request):
    s = RoleUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    target = User.objects.filter(id=s.validated_data['userId']).first()
    if target is None:
        return Response({'ok': False, 'detail': 'user not found'}, status=404)
    try:
        change_role(request.user, target, s.validated_data['role'])
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    return Response({'ok': True, 'user': serialize_user(target)})
