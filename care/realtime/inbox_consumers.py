import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser

from care.services.messaging import inbox_group, list_thread, send_message

User = get_user_model()
logger = logging.getLogger(__name__)


async def _ws_error(ws, code: int, message: str, *, close: bool = False):
    """
    Uniform error frame.
    4xxx: client errors, 5xxx: server errors.
    """
    payload = {"type": "error", "code": code, "message": message}
    try:
        await ws.send(json.dumps(payload))
    finally:
        if close:
            await ws.close(code=code)


def _get_peer(peer_id):
    return User.objects.filter(id=peer_id, is_active=True).first()


class InboxConsumer(AsyncWebsocketConsumer):
    """Per-user realtime inbox.

    Every message written for or by the connected user is pushed here
    by :func:`care.services.messaging.publish_message`.  Clients can
    also send through the socket and, after a reconnect, ask for the
    messages they missed in a conversation with ``{"type": "sync"}``.
    """

    async def connect(self):
        user = self.scope.get("user") or AnonymousUser()
        if not user.is_authenticated:
            await self.close(code=4001)
            return
        self.user = user
        self.group_name = inbox_group(user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return
        try:
            data = json.loads(text_data)
        except ValueError:
            await _ws_error(self, 4000, "invalid_json")
            return
        if not isinstance(data, dict):
            await _ws_error(self, 4001, "invalid_payload")
            return

        kind = data.get("type")
        if kind == "send":
            await self._handle_send(data)
        elif kind == "sync":
            await self._handle_sync(data)
        else:
            await _ws_error(self, 4002, "unsupported_type")

    async def _resolve_peer(self, raw):
        try:
            peer_id = int(raw)
        except (TypeError, ValueError):
            await _ws_error(self, 4003, "invalid_peer")
            return None
        peer = await database_sync_to_async(_get_peer)(peer_id)
        if peer is None:
            await _ws_error(self, 4006, "peer_not_found")
        return peer

    async def _handle_send(self, data):
        content = data.get("content", "")
        if not isinstance(content, str) or not content.strip():
            await _ws_error(self, 4004, "empty_message")
            return
        peer = await self._resolve_peer(data.get("recipientId"))
        if peer is None:
            return
        try:
            msg = await database_sync_to_async(send_message)(self.user, peer, content)
        except PermissionError:
            await _ws_error(self, 4007, "forbidden")
            return
        except ValueError as e:
            await _ws_error(self, 4005, str(e))
            return
        # The message itself arrives through the inbox group like any other
        await self.send(json.dumps({"type": "ack", "ok": True, "messageId": msg.id}))

    async def _handle_sync(self, data):
        peer = await self._resolve_peer(data.get("peerId"))
        if peer is None:
            return
        try:
            since_id = int(data.get("sinceId") or 0)
        except (TypeError, ValueError):
            await _ws_error(self, 4003, "invalid_since")
            return
        try:
            items = await database_sync_to_async(list_thread)(self.user, peer, since_id)
        except PermissionError:
            await _ws_error(self, 4007, "forbidden")
            return
        await self.send(json.dumps({"type": "history", "peerId": peer.id, "messages": items}))

    async def message_new(self, event):
        """Forward a ``message.new`` group event to the socket."""
        await self.send(json.dumps({"type": "message", **event.get("message", {})}))
