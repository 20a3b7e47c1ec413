"""
Access request and role management services.

Patients apply for the worker or doctor role; administrators approve
(which switches the user's role) or reject (which deletes the request).
Role changes invalidate the cached dashboard counts.
"""
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction

from care.models import AccessRequest
from care.services.audit import log_action
from care.services.stats import invalidate_role_counts

User = get_user_model()


def create_request(user: User, *, requested_role: str, reason: str) -> AccessRequest:
    if getattr(user, 'role', '') != 'patient':
        raise PermissionError('only patients can request access')
    if AccessRequest.objects.filter(user=user, status=AccessRequest.STATUS_PENDING).exists():
        raise ValueError('you already have a pending request')
    req = AccessRequest.objects.create(user=user, requested_role=requested_role, reason=reason)
    log_action(user=user, action='access_request', object_type='access_request', object_id=req.id,
               detail={'requestedRole': requested_role})
    return req


def pending_requests():
    return (AccessRequest.objects.filter(status=AccessRequest.STATUS_PENDING)
            .select_related('user')
            .order_by('-created_at', '-id'))


def serialize_request(r: AccessRequest) -> dict:
    return {
        'id': r.id,
        'userId': r.user_id,
        'requestedRole': r.requested_role,
        'reason': r.reason,
        'status': r.status,
        'createdAt': r.created_at.isoformat(),
        'user': {
            'name': r.user.display_name(),
            'email': r.user.email,
            'village': r.user.village,
        },
    }


@transaction.atomic
def approve_request(admin: User, req: AccessRequest, role: Optional[str] = None) -> AccessRequest:
    if req.status != AccessRequest.STATUS_PENDING:
        raise ValueError('request already processed')
    # an admin may have changed the role since the request was filed
    if req.user.role != 'patient':
        raise ValueError('user is no longer a patient')
    new_role = role or req.requested_role
    req.status = AccessRequest.STATUS_APPROVED
    req.requested_role = new_role
    req.save(update_fields=['status', 'requested_role'])
    User.objects.filter(id=req.user_id).update(role=new_role)
    invalidate_role_counts()
    log_action(user=admin, action='access_approve', object_type='access_request', object_id=req.id,
               detail={'userId': req.user_id, 'role': new_role})
    return req


def reject_request(admin: User, req: AccessRequest) -> None:
    if req.status != AccessRequest.STATUS_PENDING:
        raise ValueError('request already processed')
    req_id, user_id = req.id, req.user_id
    req.delete()
    log_action(user=admin, action='access_reject', object_type='access_request', object_id=req_id,
               detail={'userId': user_id})


def change_role(admin: User, target: User, role: str) -> User:
    if admin.id == target.id:
        raise PermissionError('administrators cannot change their own role')
    old = target.role
    target.role = role
    target.save(update_fields=['role'])
    invalidate_role_counts()
    log_action(user=admin, action='role_change', object_type='user', object_id=target.id,
               detail={'from': old, 'to': role})
    return target
