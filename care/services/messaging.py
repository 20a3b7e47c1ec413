import logging
from typing import Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Q

from care.models import Message
from care.serializers import strip_html

User = get_user_model()
logger = logging.getLogger(__name__)

# Symmetric: if A may message B then B may answer A
ALLOWED_CONTACTS = {
    'admin': ('doctor', 'worker'),
    'doctor': ('admin', 'worker'),
    'worker': ('admin', 'doctor', 'patient'),
    'patient': ('worker',),
}

EVENT_MESSAGE_NEW = 'message.new'


def inbox_group(user_id: int) -> str:
    return f"inbox.{user_id}"


def can_message(sender: User, recipient: User) -> bool:
    if not sender or not recipient or sender.id == recipient.id:
        return False
    return getattr(recipient, 'role', '') in ALLOWED_CONTACTS.get(getattr(sender, 'role', ''), ())


def list_contacts(user: User):
    roles = ALLOWED_CONTACTS.get(getattr(user, 'role', ''), ())
    return User.objects.filter(role__in=roles, is_active=True).exclude(id=user.id).order_by('name', 'id')


def serialize_message(m: Message) -> dict:
    return {
        'id': m.id,
        'senderId': m.sender_id,
        'senderRole': m.sender_role,
        'recipientId': m.recipient_id,
        'content': m.content,
        'createdAt': m.created_at.isoformat(),
    }


def _conversation(user: User, peer: User):
    return Message.objects.filter(
        Q(sender=user, recipient=peer) | Q(sender=peer, recipient=user)
    )


def list_thread(user: User, peer: User, since_id: Optional[int] = None) -> list[dict]:
    """Return the two-party conversation oldest first.

    With ``since_id`` only messages newer than that id are returned,
    which is what a client asks for after its realtime feed reconnects.
    A conversation stays readable after a role change made the pair
    ineligible for new messages.
    """
    qs = _conversation(user, peer)
    if not can_message(user, peer) and not qs.exists():
        raise PermissionError('you cannot message this user')
    if since_id:
        qs = qs.filter(id__gt=since_id)
    return [serialize_message(m) for m in qs.order_by('created_at', 'id')]


def send_message(sender: User, recipient: User, content: str) -> Message:
    if not can_message(sender, recipient):
        raise PermissionError('you cannot message this user')

    content = strip_html(content)
    if not content:
        raise ValueError('message cannot be empty')
    if len(content) > settings.MESSAGE_MAX_LENGTH:
        raise ValueError('message too long')

    msg = Message.objects.create(sender=sender, sender_role=sender.role, recipient=recipient, content=content)
    publish_message(msg)
    return msg


def publish_message(msg: Message) -> None:
    """Push a stored message to the inboxes of both participants."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    event = {"type": EVENT_MESSAGE_NEW, "message": serialize_message(msg)}
    for uid in {msg.sender_id, msg.recipient_id}:
        async_to_sync(channel_layer.group_send)(inbox_group(uid), event)
    logger.debug("published message %s to inboxes %s,%s", msg.id, msg.sender_id, msg.recipient_id)
