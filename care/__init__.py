"""Care coordination application for the Caresora backend.

This package contains models, serializers, services, views, route
registrations and realtime consumers implementing the API used by the
admin, doctor, field worker and patient dashboards.
"""
