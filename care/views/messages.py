"""
Direct messaging endpoints.

Messages are stored in :class:`care.models.Message` and pushed to both
participants' inbox groups as they are written; the thread endpoint
with ``sinceId`` lets a client catch up on what it missed while its
socket was down.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import User
from ..serializers.messaging import MessageSendSerializer, ThreadQuerySerializer
from ..services.messaging import list_contacts, list_thread, send_message, serialize_message


def _get_peer(pk):
    return User.objects.filter(id=pk, is_active=True).first()


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def contacts(request):
    """Users the caller may message, ordered by name."""
    items = [
        {'id': u.id, 'name': u.display_name(), 'role': u.role, 'village': u.village}
        for u in list_contacts(request.user)
    ]
    return Response({'ok': True, 'items': items})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def thread(request):
    s = ThreadQuerySerializer(data=request.query_params)
    s.is_valid(raise_exception=True)
    peer = _get_peer(s.validated_data['peerId'])
    if peer is None:
        return Response({'ok': False, 'detail': 'user not found'}, status=404)
    try:
        items = list_thread(request.user, peer, s.validated_data.get('sinceId'))
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    return Response({'ok': True, 'peerId': peer.id, 'items': items})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def send(request):
    s = MessageSendSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    peer = _get_peer(s.validated_data['recipientId'])
    if peer is None:
        return Response({'ok': False, 'detail': 'user not found'}, status=404)
    try:
        msg = send_message(request.user, peer, s.validated_data['content'])
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    except ValueError as e:
        return Response({'ok': False, 'detail': str(e)}, status=400)
    return Response({'ok': True, 'message': serialize_message(msg)}, status=201)
