"""
URL mappings for the Caresora API.

Each role's area lives under its own prefix (``/api/admin``,
``/api/doctor``, ``/api/worker``, ``/api/patient``) and is gated by the
matching permission class.  Trailing slashes are deliberately omitted
to match the paths the front-end calls.
"""
from django.urls import include, path

from .auth_views import (
    forgot_password_view,
    jwt_refresh_view,
    login_view,
    logout_view,
    me_view,
    reset_password_view,
    signup_view,
)
from .views import access_requests, admin_users, doctor, health, messages, patient, records, report, worker
from .views.dashboard import admin_dashboard


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),

    # Authentication
    path('api/auth/signup', signup_view, name='auth_signup'),
    path('api/auth/login', login_view, name='auth_login'),
    path('api/auth/refresh', jwt_refresh_view, name='auth_refresh'),
    path('api/auth/logout', logout_view, name='auth_logout'),
    path('api/auth/me', me_view, name='auth_me'),
    path('api/auth/forgot-password', forgot_password_view, name='auth_forgot_password'),
    path('api/auth/reset-password', reset_password_view, name='auth_reset_password'),

    # Admin
    path('api/admin/dashboard', admin_dashboard, name='admin_dashboard'),
    path('api/admin/users', admin_users.list_users, name='admin_users'),
    path('api/admin/users/role', admin_users.set_user_role, name='admin_user_role'),
    path('api/admin/requests', access_requests.list_requests, name='admin_requests'),
    path('api/admin/requests/approve', access_requests.approve, name='admin_request_approve'),
    path('api/admin/requests/reject', access_requests.reject, name='admin_request_reject'),

    # Doctor
    path('api/doctor/dashboard', doctor.doctor_dashboard, name='doctor_dashboard'),
    path('api/doctor/users', doctor.doctor_users, name='doctor_users'),
    path('api/doctor/patients/<int:pk>/records', doctor.patient_records, name='doctor_patient_records'),
    path('api/doctor/workers/<int:pk>/records', doctor.worker_records, name='doctor_worker_records'),
    path('api/doctor/review', doctor.review_patient, name='doctor_review'),

    # Field worker
    path('api/worker/dashboard', worker.worker_dashboard, name='worker_dashboard'),
    path('api/worker/patients/search', worker.search, name='worker_patient_search'),
    path('api/worker/patients/<int:pk>/records', worker.patient_history, name='worker_patient_records'),
    path('api/worker/records', worker.my_records, name='worker_records'),

    # Vitals records
    path('api/records', records.create, name='record_create'),
    path('api/records/sync', records.sync, name='record_sync'),

    # Patient
    path('api/patient/dashboard', patient.patient_dashboard, name='patient_dashboard'),
    path('api/patient/contact', patient.contact_workers, name='patient_contact'),
    path('api/patient/request-access', patient.request_access, name='patient_request_access'),

    # Messages
    path('api/messages/contacts', messages.contacts, name='message_contacts'),
    path('api/messages/thread', messages.thread, name='message_thread'),
    path('api/messages/send', messages.send, name='message_send'),

    # Report
    path('api/report/generate', report.generate, name='report_generate'),
]
