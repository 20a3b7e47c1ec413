"""
Custom permission classes for role based access control.

Each dashboard area of the API is gated by exactly one role.  A user
who reaches another role's area gets 403; the client then sends them
back to the dashboard matching their stored role.
"""
from rest_framework.permissions import BasePermission


def _has_role(request, *roles) -> bool:
    user = getattr(request, "user", None)
    return bool(user and user.is_authenticated and getattr(user, "role", None) in roles)


class IsAdminRole(BasePermission):
    """Allow access only to administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "admin")


class IsDoctorRole(BasePermission):
    """Allow access only to doctors."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "doctor")


class IsWorkerRole(BasePermission):
    """Allow access only to field workers."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "worker")


class IsPatientRole(BasePermission):
    """Allow access only to users with the patient role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "patient")


class IsClinician(BasePermission):
    """doctor or admin."""
    def has_permission(self, request, view) -> bool:
        return _has_role(request, "doctor", "admin")
