"""
Django admin registrations for the care models.

Superusers can inspect users, vitals records, messages, access
requests and the audit trail through ``/admin/``.
"""

from django.contrib import admin

from .models import AccessRequest, AuditEvent, MedicalRecord, Message, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'role', 'village', 'worker_checked', 'doctor_checked', 'is_staff')
    list_filter = ('role', 'worker_checked', 'doctor_checked')
    search_fields = ('email', 'name', 'username', 'village', 'phone')


@admin.register(MedicalRecord)
class MedicalRecordAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'worker', 'bp', 'sugar', 'weight', 'condition', 'created_at')
    list_filter = ('condition',)
    search_fields = ('patient__name', 'worker__name', 'client_ref')
    raw_id_fields = ('patient', 'worker')


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'sender', 'sender_role', 'recipient', 'created_at')
    list_filter = ('sender_role',)
    search_fields = ('sender__name', 'recipient__name', 'content')


@admin.register(AccessRequest)
class AccessRequestAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'requested_role', 'status', 'created_at')
    list_filter = ('status', 'requested_role')
    search_fields = ('user__name', 'user__email')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'action', 'object_type', 'object_id', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('action', 'object_id', 'user__email')
