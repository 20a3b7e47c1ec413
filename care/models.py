"""
Database models for the Caresora backend.

These models capture the tables the dashboards read and write: users
with a care role, vitals records captured by field workers, direct
messages between roles and requests for elevated access.  Field names
follow the JSON the clients exchange so that views can serialise rows
without much translation.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Custom user model carrying the care role and village profile.

    Roles mirror the four dashboards: 'admin', 'doctor', 'worker' and
    'patient'.  Every signup starts as a patient; other roles are
    granted by an administrator directly or through an
    :class:`AccessRequest`.  The review flags are only meaningful for
    patients.
    """
    ROLE_ADMIN = 'admin'
    ROLE_DOCTOR = 'doctor'
    ROLE_WORKER = 'worker'
    ROLE_PATIENT = 'patient'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_WORKER, 'Field worker'),
        (ROLE_PATIENT, 'Patient'),
    ]
    name = models.CharField(max_length=120, blank=True)
    email = models.EmailField(unique=True)
    # Filtered on by every dashboard count and contact list
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_PATIENT, db_index=True)
    village = models.CharField(max_length=120, blank=True, db_index=True)
    age = models.PositiveIntegerField(null=True, blank=True)
    phone = models.CharField(max_length=20, blank=True)

    worker_checked = models.BooleanField(default=False)
    doctor_checked = models.BooleanField(default=False)
    doctor_message = models.TextField(blank=True)

    def display_name(self) -> str:
        return self.name or self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.display_name()} ({self.role})"


class MedicalRecord(models.Model):
    """A set of vitals captured by a field worker during a village visit.

    ``client_ref`` is generated on the device before the record is
    queued offline, so replaying the same pending record twice never
    creates a second row.  ``recorded_at`` keeps the capture time from
    the device while ``created_at`` is the time the server stored it.
    """
    CONDITION_STABLE = 'stable'
    CONDITION_ATTENTION = 'attention'
    CONDITION_CRITICAL = 'critical'
    CONDITION_CHOICES = [
        (CONDITION_STABLE, 'Stable'),
        (CONDITION_ATTENTION, 'Needs care'),
        (CONDITION_CRITICAL, 'Critical'),
    ]
    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='medical_records')
    worker = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='submitted_records')
    bp = models.CharField(max_length=16, blank=True)
    sugar = models.FloatField(null=True, blank=True, help_text="mg/dL")
    weight = models.FloatField(null=True, blank=True, help_text="kg")
    symptoms = models.TextField(blank=True)
    condition = models.CharField(max_length=10, choices=CONDITION_CHOICES, default=CONDITION_STABLE, db_index=True)
    client_ref = models.UUIDField(null=True, blank=True, unique=True)
    recorded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'recorded_at']),
            models.Index(fields=['worker', 'recorded_at']),
        ]

    def __str__(self) -> str:
        return f"record {self.id} p={self.patient_id} ({self.condition})"


class Message(models.Model):
    """A direct message between two users.

    ``sender_role`` is copied from the sender when the message is
    written, so a later role change does not rewrite history.
    """
    sender = models.ForeignKey(User, on_delete=models.CASCADE, related_name='sent_messages')
    sender_role = models.CharField(max_length=10, choices=User.ROLE_CHOICES)
    recipient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='received_messages')
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['sender', 'recipient', 'created_at']),
            models.Index(fields=['recipient', 'created_at']),
        ]

    def __str__(self) -> str:
        return f"msg {self.id} {self.sender_id}->{self.recipient_id}"


class AccessRequest(models.Model):
    """A patient's application to act as a field worker or doctor."""
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
    ]
    REQUESTABLE_ROLES = [
        (User.ROLE_WORKER, 'Field worker'),
        (User.ROLE_DOCTOR, 'Doctor'),
    ]
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='access_requests')
    requested_role = models.CharField(max_length=10, choices=REQUESTABLE_ROLES)
    reason = models.TextField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.user_id} -> {self.requested_role} ({self.status})"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at']),
            models.Index(fields=['object_type', 'object_id', 'created_at']),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
